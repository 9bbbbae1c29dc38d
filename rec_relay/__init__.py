"""Recording Relay: watches a recorder's output folder and ships finished sessions.

Detects when the recorder starts and stops writing a file, remuxes the
finished recording to a streaming-friendly MP4, and uploads the result to
Google Drive.  Also serves a small status API and a live telemetry relay.
"""

__version__ = "1.0.0"
__app_name__ = "Recording Relay"
