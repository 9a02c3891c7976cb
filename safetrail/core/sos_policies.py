"""SOS alert policy constants."""

from __future__ import annotations

# Delay before the decoy incoming call is offered (2s)
DECOY_DELAY_MS = 2000

SOS_DESCRIPTION = "SOS triggered by user"

SOS_SENT_TITLE = "SOS Alert Sent"
SOS_SENT_MESSAGE = "Emergency contacts and nearby police have been notified."

RECORDING_SAVED_TITLE = "Recording Saved"
RECORDING_SAVED_MESSAGE = "Audio recording has been sent to emergency contacts and police."

AUTO_ALERT_DESCRIPTION = "Entered a high risk zone"
AUTO_ALERT_TITLE = "High Risk Area"
AUTO_ALERT_MESSAGE = "You have entered a high risk zone. Leave the area if possible."

NOTIFICATION_TYPE_EMERGENCY = "emergency"
NOTIFICATION_TYPE_INFO = "info"
