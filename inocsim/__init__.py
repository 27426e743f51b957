"""INOCSIM: day-stepped stochastic model of infection and treatment.

A small fixed population of hosts, each carrying zero or more
inoculations that progress Exposed → Acute/Chronic → cleared, with:
  - A day clock driven by wall time × speed multiplier
  - Probabilistic per-inoculation state transitions
  - Host-level treatment requests, forced clearance and prophylaxis
  - Continuous-time incidence of new inoculations
"""

__version__ = "0.1.0"
