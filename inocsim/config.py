"""Configuration system for INOCSIM.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → override file → programmatic overrides

Parameters are grouped into sections that map 1:1 to YAML top-level keys.
The transition probabilities and dwell-time samplers live in
``disease``; the treatment/prophylaxis policy in ``treatment``; the
wall-time → day conversion in ``clock``.

Live edits between ticks go through ``apply_updates()`` so that a bad
value is rejected synchronously instead of being clamped.
"""

from __future__ import annotations

import dataclasses
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml

from inocsim.utils import ROUNDING_MODES, round_days


# ═══════════════════════════════════════════════════════════════════════
# SAMPLERS
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class UniformRange:
    """Continuous uniform distribution on [low, high)."""
    low: float
    high: float

    def sample(self, rng: np.random.Generator) -> float:
        """Draw one value."""
        return float(rng.uniform(self.low, self.high))

    @classmethod
    def coerce(cls, value: Any) -> 'UniformRange':
        """Build from a [low, high] list, a {low, high} dict, or pass through."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls(low=float(value['low']), high=float(value['high']))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(low=float(value[0]), high=float(value[1]))
        raise ValueError(
            f"expected [low, high] or {{low, high}} for a uniform range, got {value!r}"
        )


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Population size and seeding."""
    n_hosts: int = 5
    seed: int = 42
    initial_inoculations_per_host: int = 1


@dataclass
class ClockSection:
    """Wall time → simulated day conversion."""
    seconds_per_day: float = 1.0    # one day per wall second at speed 1
    speed_multiplier: float = 1.0


@dataclass
class DiseaseSection:
    """Natural history of a single inoculation.

    E  → A (prob_acute) or C
    A  → C (prob_acute_to_chronic) or cleared
    C  → cleared
    """
    liver_stage_days: float = 7.0         # Fixed E dwell time
    prob_acute: float = 0.7
    prob_acute_to_chronic: float = 0.2
    acute_duration: UniformRange = field(
        default_factory=lambda: UniformRange(10.0, 40.0)
    )
    chronic_duration: UniformRange = field(
        default_factory=lambda: UniformRange(100.0, 400.0)
    )
    incidence_rate: float = 0.1           # New inoculations per host per wall second (× speed)


@dataclass
class TreatmentSection:
    """Host-level treatment and prophylaxis policy."""
    prob_treatment: float = 0.4           # P(treatment request | E → A)
    treatment_delay: UniformRange = field(
        default_factory=lambda: UniformRange(0.0, 2.0)
    )
    prophylaxis_days: float = 14.0
    day_rounding: str = 'round'           # 'round' (half away from zero), 'floor', 'ceil'


@dataclass
class SimulationConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    clock: ClockSection = field(default_factory=ClockSection)
    disease: DiseaseSection = field(default_factory=DiseaseSection)
    treatment: TreatmentSection = field(default_factory=TreatmentSection)


# Parameters the front-end may edit between ticks, and the section owning each.
LIVE_PARAMETERS = {
    'incidence_rate': 'disease',
    'prophylaxis_days': 'treatment',
    'prob_treatment': 'treatment',
    'speed_multiplier': 'clock',
}

_RANGE_FIELDS = {'acute_duration', 'chronic_duration', 'treatment_delay'}


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Args:
        base: Base dictionary (modified in place).
        override: Override dictionary.

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    for name in _RANGE_FIELDS & filtered.keys():
        filtered[name] = UniformRange.coerce(filtered[name])
    return section_cls(**filtered)


def _yaml_to_config(data: Dict) -> SimulationConfig:
    """Convert a merged YAML dict to a SimulationConfig."""
    sections = {}
    section_map = {
        'simulation': SimulationSection,
        'clock': ClockSection,
        'disease': DiseaseSection,
        'treatment': TreatmentSection,
    }
    for key, cls in section_map.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return SimulationConfig(**sections)


def config_to_dict(config: SimulationConfig) -> Dict:
    """Plain-dict view of a config (ranges become {low, high})."""
    return dataclasses.asdict(config)


# ═══════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════

def _check_probability(name: str, value: float) -> None:
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0, 1], got {value}")


def _check_range(name: str, r: UniformRange, positive: bool) -> None:
    if r.low > r.high:
        raise ValueError(
            f"{name}.low ({r.low}) must be <= {name}.high ({r.high})"
        )
    if positive and r.low <= 0:
        raise ValueError(f"{name} bounds must be positive, got {r}")
    if not positive and r.low < 0:
        raise ValueError(f"{name} bounds must be non-negative, got {r}")


def validate_config(config: SimulationConfig) -> None:
    """Validate configuration constraints. Raises ValueError on failure.

    Out-of-range values are never clamped; the caller gets the error.
    """
    sim = config.simulation
    if sim.n_hosts < 0:
        raise ValueError(f"simulation.n_hosts must be >= 0, got {sim.n_hosts}")
    if sim.seed < 0:
        raise ValueError("simulation.seed must be non-negative")
    if sim.initial_inoculations_per_host < 0:
        raise ValueError(
            "simulation.initial_inoculations_per_host must be >= 0, "
            f"got {sim.initial_inoculations_per_host}"
        )

    clk = config.clock
    if clk.seconds_per_day <= 0:
        raise ValueError(
            f"clock.seconds_per_day must be positive, got {clk.seconds_per_day}"
        )
    if clk.speed_multiplier <= 0:
        raise ValueError(
            f"clock.speed_multiplier must be positive, got {clk.speed_multiplier}"
        )

    d = config.disease
    _check_probability('disease.prob_acute', d.prob_acute)
    _check_probability('disease.prob_acute_to_chronic', d.prob_acute_to_chronic)
    if d.liver_stage_days < 0:
        raise ValueError(
            f"disease.liver_stage_days must be >= 0, got {d.liver_stage_days}"
        )
    if d.incidence_rate < 0:
        raise ValueError(
            f"disease.incidence_rate must be >= 0, got {d.incidence_rate}"
        )
    _check_range('disease.acute_duration', d.acute_duration, positive=True)
    _check_range('disease.chronic_duration', d.chronic_duration, positive=True)

    t = config.treatment
    _check_probability('treatment.prob_treatment', t.prob_treatment)
    _check_range('treatment.treatment_delay', t.treatment_delay, positive=False)
    if t.prophylaxis_days < 0:
        raise ValueError(
            f"treatment.prophylaxis_days must be >= 0, got {t.prophylaxis_days}"
        )
    if t.day_rounding not in ROUNDING_MODES:
        raise ValueError(
            f"treatment.day_rounding must be one of {sorted(ROUNDING_MODES)}, "
            f"got '{t.day_rounding}'"
        )
    if t.prophylaxis_days > 0 and round_days(t.prophylaxis_days, t.day_rounding) == 0:
        warnings.warn(
            f"treatment.prophylaxis_days={t.prophylaxis_days} rounds to a "
            f"zero-day prophylaxis window; treated hosts leave prophylaxis "
            f"on the day they are treated.",
            UserWarning,
            stacklevel=2,
        )


def apply_updates(config: SimulationConfig, **changes: float) -> None:
    """Apply live parameter edits, validating before anything is changed.

    Only the names in LIVE_PARAMETERS are accepted. On failure the config
    is left exactly as it was.

    Raises:
        KeyError: If a name is not a live-editable parameter.
        ValueError: If the resulting configuration is invalid.
    """
    for name in changes:
        if name not in LIVE_PARAMETERS:
            raise KeyError(
                f"'{name}' is not a live parameter. "
                f"Editable: {sorted(LIVE_PARAMETERS)}"
            )

    trial = dataclasses.replace(
        config,
        clock=dataclasses.replace(config.clock),
        disease=dataclasses.replace(config.disease),
        treatment=dataclasses.replace(config.treatment),
    )
    for name, value in changes.items():
        setattr(getattr(trial, LIVE_PARAMETERS[name]), name, value)
    validate_config(trial)

    for name, value in changes.items():
        setattr(getattr(config, LIVE_PARAMETERS[name]), name, value)


def load_config(
    base_path: Union[str, Path],
    override_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> SimulationConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → override file → overrides dict.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        override_path: Optional override YAML (skipped if missing).
        overrides: Optional dict of programmatic overrides.

    Returns:
        Validated SimulationConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ValueError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if override_path is not None:
        override_path = Path(override_path)
        if override_path.exists():
            with open(override_path) as f:
                layer = yaml.safe_load(f) or {}
            deep_merge(config_dict, layer)

    if overrides is not None:
        deep_merge(config_dict, overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> SimulationConfig:
    """Return a SimulationConfig with all default values."""
    config = SimulationConfig()
    validate_config(config)
    return config
