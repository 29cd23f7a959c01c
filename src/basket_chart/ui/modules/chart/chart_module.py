from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from basket_chart.core.config import (
    BAND_NAMES,
    CHART_TYPES,
    INSTRUMENT_COLORS,
    PROXIMITY_MODES,
    RECOMPUTE_DEBOUNCE_MS,
)
from basket_chart.core.models import InstrumentStyle
from basket_chart.services.chart_settings_manager import ChartSettingsManager
from basket_chart.services.json_storage import JsonStorage
from basket_chart.services.proximity_service import ProximityIndicatorConfig
from basket_chart.services.statistical_band_settings_manager import StatisticalBandSettingsManager
from basket_chart.ui.modules.chart.widgets.basket_chart import BasketChart
from basket_chart.utils.formatters import format_percentage


class ChartModule(QWidget):
    """
    Basket charting module.
    Instrument visibility list, chart type, statistical bands and the
    proximity indicator pane around a BasketChart.
    """

    def __init__(self, storage: Optional[JsonStorage] = None, parent=None):
        super().__init__(parent)

        self.chart_settings_manager = ChartSettingsManager(storage)
        self.band_settings_manager = StatisticalBandSettingsManager(storage)
        self._styles: Dict[str, InstrumentStyle] = {}

        # Slider moves arrive in bursts; recompute once they settle
        self._anchor_timer = QTimer(self)
        self._anchor_timer.setSingleShot(True)
        self._anchor_timer.setInterval(RECOMPUTE_DEBOUNCE_MS)

        self._setup_ui()
        self._load_settings_into_controls()
        self._connect_signals()

    @property
    def controller(self):
        return self.chart.controller

    def _setup_ui(self) -> None:
        """Create the UI layout."""
        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(0)

        self.controls_widget = QWidget()
        controls = QHBoxLayout(self.controls_widget)
        controls.setContentsMargins(15, 12, 15, 12)
        controls.setSpacing(20)

        controls.addWidget(QLabel("CHART"))
        self.chart_type_combo = QComboBox()
        self.chart_type_combo.addItems(CHART_TYPES)
        self.chart_type_combo.setMaximumWidth(120)
        controls.addWidget(self.chart_type_combo)

        controls.addSpacing(10)

        self.bands_check = QCheckBox("Bands")
        controls.addWidget(self.bands_check)

        self.cumulative_check = QCheckBox("Cumulative")
        controls.addWidget(self.cumulative_check)

        controls.addWidget(QLabel("ANCHOR"))
        self.anchor_slider = QSlider(Qt.Horizontal)
        self.anchor_slider.setRange(0, 100)
        self.anchor_slider.setMaximumWidth(160)
        controls.addWidget(self.anchor_slider)
        self.anchor_label = QLabel(format_percentage(0.0, decimals=0))
        self.anchor_label.setMinimumWidth(40)
        controls.addWidget(self.anchor_label)

        controls.addSpacing(10)

        controls.addWidget(QLabel("PROXIMITY"))
        self.proximity_combo = QComboBox()
        self.proximity_combo.addItems(PROXIMITY_MODES)
        self.proximity_combo.setMaximumWidth(100)
        controls.addWidget(self.proximity_combo)

        self.threshold_spin = QDoubleSpinBox()
        self.threshold_spin.setRange(0.0, 100.0)
        self.threshold_spin.setSingleStep(0.1)
        self.threshold_spin.setSuffix(" %")
        self.threshold_spin.setMaximumWidth(90)
        controls.addWidget(self.threshold_spin)

        self.fit_btn = QPushButton("Reset View")
        self.fit_btn.setMaximumWidth(100)
        controls.addWidget(self.fit_btn)

        controls.addStretch(1)
        root.addWidget(self.controls_widget)

        content_layout = QHBoxLayout()
        content_layout.setContentsMargins(0, 0, 0, 0)
        content_layout.setSpacing(0)

        self.chart = BasketChart(
            band_settings=self.band_settings_manager,
            chart_type=self.chart_settings_manager.get_chart_type(),
            proximity_config=ProximityIndicatorConfig.from_settings(
                self.chart_settings_manager.get_proximity_settings()
            ),
        )
        self.chart.set_timeframe(self.chart_settings_manager.get_setting("timeframe"))
        content_layout.addWidget(self.chart, stretch=1)

        content_layout.addWidget(self._create_side_panel())
        root.addLayout(content_layout, stretch=1)

    def _create_side_panel(self) -> QWidget:
        """Instrument visibility list and per-level band toggles."""
        panel = QWidget()
        panel.setFixedWidth(220)
        panel.setObjectName("instrumentPanel")

        layout = QVBoxLayout(panel)
        layout.setContentsMargins(10, 10, 10, 10)
        layout.setSpacing(10)

        layout.addWidget(QLabel("Instruments"))
        self.instrument_list = QListWidget()
        layout.addWidget(self.instrument_list, stretch=1)

        layout.addWidget(QLabel("Band levels"))
        self.level_checks: Dict[str, QCheckBox] = {}
        for band in BAND_NAMES:
            check = QCheckBox(band)
            self.level_checks[band] = check
            layout.addWidget(check)

        return panel

    def _load_settings_into_controls(self) -> None:
        config = self.controller.band_config
        self.chart_type_combo.setCurrentText(self.controller.chart_type)
        self.bands_check.setChecked(config.enabled)
        self.cumulative_check.setChecked(config.use_cumulative_mode)
        for band, check in self.level_checks.items():
            check.setChecked(config.level(band).enabled)

        anchor = self.chart_settings_manager.get_setting("anchor_percent")
        self.anchor_slider.setValue(anchor)
        self.anchor_label.setText(format_percentage(anchor / 100.0, decimals=0))
        self.chart.set_anchor_fraction(anchor / 100.0)

        proximity = self.controller.proximity_config
        self.proximity_combo.setCurrentText(proximity.mode)
        self.threshold_spin.setValue(proximity.threshold_percent)

    def _connect_signals(self) -> None:
        """Connect all signals."""
        self.chart_type_combo.currentTextChanged.connect(self._on_chart_type_changed)
        self.bands_check.toggled.connect(self._on_band_config_changed)
        self.cumulative_check.toggled.connect(self._on_band_config_changed)
        for check in self.level_checks.values():
            check.toggled.connect(self._on_band_config_changed)

        self.anchor_slider.valueChanged.connect(self._on_anchor_moved)
        self._anchor_timer.timeout.connect(self._apply_anchor)

        self.proximity_combo.currentTextChanged.connect(lambda _: self._on_proximity_changed())
        self.threshold_spin.valueChanged.connect(lambda _: self._on_proximity_changed())

        self.instrument_list.itemChanged.connect(lambda _: self._on_visibility_changed())
        self.fit_btn.clicked.connect(self.chart.fit_content)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def load_points(self, points, styles: Optional[Dict[str, InstrumentStyle]] = None) -> None:
        """
        Replace the chart data; new instruments start visible.

        Instruments without a style in styles (or from an earlier load) get the
        next palette color and the default line weight.
        """
        if styles:
            self._styles.update(styles)
        self.chart.set_points(points)

        new_ids = [i for i in self.controller.instrument_ids if i not in self._styles]
        line_weight = self.chart_settings_manager.get_default_line_weight()
        for instrument_id in new_ids:
            color = INSTRUMENT_COLORS[len(self._styles) % len(INSTRUMENT_COLORS)]
            self._styles[instrument_id] = InstrumentStyle(color=color, line_weight=line_weight)
        if styles or new_ids:
            self.chart.set_instrument_styles(dict(self._styles))

        known = set(self.instrument_ids())
        self.instrument_list.blockSignals(True)
        for instrument_id in self.controller.instrument_ids:
            if instrument_id in known:
                continue
            item = QListWidgetItem(instrument_id)
            item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
            item.setCheckState(Qt.Checked)
            self.instrument_list.addItem(item)
        self.instrument_list.blockSignals(False)

        self._on_visibility_changed()

    def instrument_styles(self) -> Dict[str, InstrumentStyle]:
        return dict(self._styles)

    def instrument_ids(self) -> List[str]:
        return [self.instrument_list.item(i).text() for i in range(self.instrument_list.count())]

    def checked_instrument_ids(self) -> List[str]:
        return [
            self.instrument_list.item(i).text()
            for i in range(self.instrument_list.count())
            if self.instrument_list.item(i).checkState() == Qt.Checked
        ]

    def set_checked(self, instrument_ids: Iterable[str]) -> None:
        wanted = set(instrument_ids)
        self.instrument_list.blockSignals(True)
        for i in range(self.instrument_list.count()):
            item = self.instrument_list.item(i)
            item.setCheckState(Qt.Checked if item.text() in wanted else Qt.Unchecked)
        self.instrument_list.blockSignals(False)
        self._on_visibility_changed()

    # ------------------------------------------------------------------
    # Control handlers
    # ------------------------------------------------------------------

    def _on_visibility_changed(self) -> None:
        self.chart.set_visible_instruments(self.checked_instrument_ids())

    def _on_chart_type_changed(self, chart_type: str) -> None:
        if self.chart.set_chart_type(chart_type):
            self.chart_settings_manager.update_settings({"chart_type": chart_type})

    def _on_band_config_changed(self, *_args) -> None:
        config = self.controller.band_config
        for band, check in self.level_checks.items():
            config = config.with_level(band, enabled=check.isChecked())
        config = replace(
            config,
            enabled=self.bands_check.isChecked(),
            use_cumulative_mode=self.cumulative_check.isChecked(),
        )
        self.chart.set_band_config(config)

    def _on_anchor_moved(self, value: int) -> None:
        self.anchor_label.setText(format_percentage(value / 100.0, decimals=0))
        self._anchor_timer.start()

    def _apply_anchor(self) -> None:
        value = self.anchor_slider.value()
        self.chart.set_anchor_fraction(value / 100.0)
        self.chart_settings_manager.update_settings({"anchor_percent": value})

    def _on_proximity_changed(self) -> None:
        mode = self.proximity_combo.currentText()
        threshold = self.threshold_spin.value()
        self.chart.set_proximity_config(ProximityIndicatorConfig(mode=mode, threshold_percent=threshold))
        self.chart_settings_manager.update_settings(
            {"proximity_mode": mode, "proximity_threshold_percent": threshold}
        )
