"""
Signal Processing Service

Camera PPG frames in, VitalReadings out.
"""

from lifeline.services.signal.buffer import SignalBuffer
from lifeline.services.signal.calibration import CalibrationProfile, DEFAULT_CALIBRATION
from lifeline.services.signal.processor import (
    SignalProcessor,
    classify_placement,
    frame_to_scalar,
)
from lifeline.services.signal.sources import (
    SampleSource,
    CaptureSource,
    SyntheticSource,
    select_source,
)

__all__ = [
    "SignalBuffer",
    "CalibrationProfile",
    "DEFAULT_CALIBRATION",
    "SignalProcessor",
    "classify_placement",
    "frame_to_scalar",
    "SampleSource",
    "CaptureSource",
    "SyntheticSource",
    "select_source",
]
