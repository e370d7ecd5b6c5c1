from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import with_config

from .enums import (
    DisplayMode,
    FontFamily,
    LibraryFilter,
    LibrarySortOrder,
    MaxWidth,
    PageAnimation,
    ProgressStyle,
    RatingFormat,
    ReaderTheme,
    ReadingDirection,
    ReadingStatus,
    ScrollMode,
    TapAction,
    TextAlign,
    ThemeMode,
    UiDensity,
    VolumeKeyDirection,
)
from .schema import RECORD_CONFIG


@with_config(RECORD_CONFIG)
@dataclass
class AppSettingsRecord:
    # Appearance
    theme_mode: ThemeMode = ThemeMode.DARK
    amoled_black: bool = False
    use_dynamic_color: bool = False

    # Layout; grid columns <= 0 means "auto"
    ui_density: UiDensity = UiDensity.DEFAULT
    library_grid_columns: int = 0
    browse_grid_columns: int = 0
    search_grid_columns: int = 0
    show_badges: bool = True
    library_display_mode: DisplayMode = DisplayMode.GRID
    browse_display_mode: DisplayMode = DisplayMode.GRID
    search_display_mode: DisplayMode = DisplayMode.GRID
    rating_format: RatingFormat = RatingFormat.TEN_POINT

    # Library
    default_library_sort: LibrarySortOrder = LibrarySortOrder.LAST_READ
    default_library_filter: LibraryFilter = LibraryFilter.DOWNLOADED

    # Auto-download; a limit of 0 means unlimited
    auto_download_enabled: bool = False
    auto_download_on_wifi_only: bool = True
    auto_download_limit: int = 10
    auto_download_for_statuses: List[ReadingStatus] = field(default_factory=lambda: [ReadingStatus.READING])

    search_results_per_provider: int = 6
    keep_screen_on: bool = True
    infinite_scroll: bool = False

    # Providers
    provider_order: List[str] = field(default_factory=list)
    disabled_providers: List[str] = field(default_factory=list)


@with_config(RECORD_CONFIG)
@dataclass
class ReaderSettingsRecord:
    # Typography
    font_size: int = 18
    line_height: float = 1.6
    font_family: FontFamily = FontFamily.SYSTEM_SERIF
    font_weight: int = 400
    text_align: TextAlign = TextAlign.LEFT
    letter_spacing: float = 0.0
    word_spacing: float = 1.0
    hyphenation: bool = True

    # Layout
    max_width: MaxWidth = MaxWidth.LARGE
    margin_horizontal: int = 20
    margin_vertical: int = 16
    paragraph_spacing: float = 1.2
    paragraph_indent: float = 0.0

    # Appearance; brightness -1 follows the system
    theme: ReaderTheme = ReaderTheme.DARK
    brightness: float = -1.0
    warmth_filter: float = 0.0
    show_progress: bool = True
    progress_style: ProgressStyle = ProgressStyle.BAR
    show_reading_time: bool = True
    show_chapter_title: bool = True

    # Behavior
    keep_screen_on: bool = True
    volume_key_navigation: bool = False
    volume_key_direction: VolumeKeyDirection = VolumeKeyDirection.NATURAL
    reading_direction: ReadingDirection = ReadingDirection.LTR
    long_press_selection: bool = True
    auto_hide_controls_delay: int = 10000

    # Scroll & navigation
    scroll_mode: ScrollMode = ScrollMode.CONTINUOUS
    page_animation: PageAnimation = PageAnimation.SLIDE
    smooth_scroll: bool = True
    scroll_sensitivity: float = 1.0
    edge_gestures: bool = True

    # Auto-scroll
    auto_scroll_enabled: bool = False
    auto_scroll_speed: float = 1.0

    # Accessibility
    force_high_contrast: bool = False
    reduce_motion: bool = False
    larger_touch_targets: bool = False

    # Tap zones
    tap_horizontal_zone_ratio: float = 0.25
    tap_vertical_zone_ratio: float = 0.2
    tap_left_action: TapAction = TapAction.PREVIOUS
    tap_right_action: TapAction = TapAction.NEXT
    tap_top_action: TapAction = TapAction.CONTROLS
    tap_bottom_action: TapAction = TapAction.CONTROLS
    tap_center_action: TapAction = TapAction.CONTROLS
    tap_double_tap_action: TapAction = TapAction.FULLSCREEN


@with_config(RECORD_CONFIG)
@dataclass
class SettingsBlob:
    """
    What the settings store hands out and accepts. Either half may be missing
    when a store has never been written.
    """

    app: Optional[AppSettingsRecord] = None
    reader: Optional[ReaderSettingsRecord] = None
