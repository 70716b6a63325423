"""
Signal Domain Models

Raw acquisition frames delivered by the capture shim.
Frames are ephemeral: each is reduced to a single scalar on
ingest and then discarded.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


# Centre region of interest used when reducing a full image (fraction of each axis)
ROI_START = 0.3
ROI_SPAN = 0.4


@dataclass(frozen=True)
class SampleFrame:
    """
    One acquisition tick.

    Attributes:
        channels: Mean (red, green, blue) intensities of the region of interest
        timestamp: Acquisition time in seconds (monotonic clock)
        coverage: Fraction (0-1) of the frame matching the expected
            reflectance profile; inferred from the channels when None
    """

    channels: tuple[float, float, float]
    timestamp: float
    coverage: Optional[float] = None

    @property
    def red(self) -> float:
        return self.channels[0]

    @property
    def green(self) -> float:
        return self.channels[1]

    @property
    def blue(self) -> float:
        return self.channels[2]

    @property
    def brightness(self) -> float:
        """Mean intensity across channels."""
        return (self.red + self.green + self.blue) / 3.0

    def effective_coverage(self) -> float:
        """
        Coverage supplied by the shim, or a profile match of the mean colour.

        A fingertip over a lit lens reflects mostly red: the mean colour
        either matches the skin profile (1.0) or it does not (0.0).
        """
        if self.coverage is not None:
            return float(min(1.0, max(0.0, self.coverage)))
        return 1.0 if _matches_skin_profile(self.red, self.green, self.blue) else 0.0

    @classmethod
    def from_pixels(cls, pixels: np.ndarray, timestamp: float) -> "SampleFrame":
        """
        Reduce an RGB image (H x W x 3) to a frame.

        Channel means come from the centre 40% region; coverage is the
        fraction of all pixels matching the skin profile.

        Args:
            pixels: RGB pixel array
            timestamp: Acquisition time in seconds

        Returns:
            SampleFrame for the image
        """
        image = np.asarray(pixels, dtype=float)
        if image.ndim != 3 or image.shape[2] < 3:
            raise ValueError("pixels must be an H x W x 3 array")

        height, width = image.shape[:2]
        y0, x0 = int(height * ROI_START), int(width * ROI_START)
        y1 = max(y0 + 1, int(height * (ROI_START + ROI_SPAN)))
        x1 = max(x0 + 1, int(width * (ROI_START + ROI_SPAN)))
        roi = image[y0:y1, x0:x1, :3]

        red, green, blue = (float(np.mean(roi[:, :, i])) for i in range(3))

        r, g, b = image[:, :, 0], image[:, :, 1], image[:, :, 2]
        skin = (r > 60) & (g > 40) & (b > 20) & (r > b) & (r > g * 0.8)
        coverage = float(np.count_nonzero(skin)) / float(height * width)

        return cls(channels=(red, green, blue), timestamp=timestamp, coverage=coverage)


def _matches_skin_profile(red: float, green: float, blue: float) -> bool:
    return red > 60 and green > 40 and blue > 20 and red > blue and red > green * 0.8
