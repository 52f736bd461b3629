"""Shared test fixtures for the MPPT engine and API tests."""

from __future__ import annotations

import pytest

from engine.simulation.runner import SimulationConfig, SimulationRunner
from engine.solar.iv_curve import IVCurve, generate_iv_curve
from engine.solar.single_diode import ModuleParameters


# ======================================================================
# Module fixtures
# ======================================================================

@pytest.fixture
def default_module() -> ModuleParameters:
    """36-cell module: IL_stc 5.5 A, I0_stc 1e-9 A, Rs 0.25, Rsh 200, n 1.3."""
    return ModuleParameters()


@pytest.fixture
def stc_curve(default_module) -> IVCurve:
    """Curve at 1000 W/m^2 and 25 degC."""
    return generate_iv_curve(1000.0, 25.0, default_module)


# ======================================================================
# Simulation fixtures
# ======================================================================

@pytest.fixture
def sim_config() -> SimulationConfig:
    """Default session: 800 W/m^2, 25 degC, 100 Ah battery at 60 % SOC."""
    return SimulationConfig()


@pytest.fixture
def runner(sim_config) -> SimulationRunner:
    return SimulationRunner(sim_config)


@pytest.fixture
def dark_runner() -> SimulationRunner:
    """Night-time session (no irradiance)."""
    return SimulationRunner(SimulationConfig(irradiance=0.0))
