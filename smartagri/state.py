"""Per-session application state handed to every page."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from .advisory import AdvisoryFlow
from .crops import MANUAL, CropProfile, get_profile, manual_profile
from .measurements import Measurement, SensorReadings
from .sampling import SAMPLE_INTERVAL_SECONDS, SampleLog, SamplingTask

logger = logging.getLogger(__name__)

HOME = "home"
DETAIL = "detail"
RESULTS = "results"
SOIL_ANALYSIS = "soil_analysis"
PAGES = (HOME, DETAIL, RESULTS, SOIL_ANALYSIS)


@dataclass
class AppState:
    page: str = HOME
    parameter: Optional[Measurement] = None
    dark_mode: bool = True
    selected_crop: str = MANUAL
    manual: CropProfile = field(default_factory=manual_profile)
    soil_health: AdvisoryFlow = field(default_factory=lambda: AdvisoryFlow("soil-health"))
    crop_prediction: AdvisoryFlow = field(default_factory=lambda: AdvisoryFlow("crop-prediction"))
    sample_log: SampleLog = field(default_factory=SampleLog)
    sampler: Optional[SamplingTask] = None
    sample_interval: float = SAMPLE_INTERVAL_SECONDS

    # ---- navigation / theme ----
    def navigate(self, page: str, parameter: Optional[Measurement] = None) -> None:
        if page not in PAGES:
            raise ValueError(f"Unknown page: {page}")
        if self.page == SOIL_ANALYSIS and page != SOIL_ANALYSIS:
            self.stop_capture()
        self.page = page
        self.parameter = parameter

    def toggle_dark_mode(self) -> None:
        self.dark_mode = not self.dark_mode

    # ---- favorable ranges ----
    @property
    def profile(self) -> CropProfile:
        if self.selected_crop == MANUAL:
            return self.manual
        return get_profile(self.selected_crop)

    def active_ranges(self) -> Dict[Measurement, str]:
        return dict(self.profile.ranges)

    def select_crop(self, name: str) -> None:
        get_profile(name)
        if name != self.selected_crop:
            self.selected_crop = name
            self.clear_suggestions()

    def set_manual_range(self, measurement: Measurement, spec: str) -> None:
        if self.manual.range_for(measurement) == spec:
            return
        self.manual = self.manual.with_range(measurement, spec)
        if self.selected_crop == MANUAL:
            self.clear_suggestions()

    # ---- AI suggestions ----
    def clear_suggestions(self) -> None:
        self.soil_health.clear()
        self.crop_prediction.clear()

    # ---- sample capture ----
    @property
    def capturing(self) -> bool:
        return self.sampler is not None

    def start_capture(self, snapshot: Callable[[], SensorReadings], alive: Optional[Callable[[], bool]] = None) -> None:
        if self.capturing:
            return
        self.sampler = SamplingTask(self.sample_log, snapshot, self.sample_interval, alive=alive).start()

    def stop_capture(self) -> None:
        if self.sampler is not None:
            self.sampler.cancel()
            self.sampler = None

    def clear_samples(self) -> None:
        self.stop_capture()
        self.sample_log.clear()

    def teardown(self) -> None:
        self.stop_capture()
