"""Treatment and prophylaxis policy.

Once per simulated day, for each host:
  1. If a pending treatment day has arrived: clear every inoculation the
     host owns, put it on prophylaxis until day + round(prophylaxis_days),
     and drop the pending request. These happen together.
  2. If the prophylaxis end day has arrived: take the host off prophylaxis.

Step 2 sees the end day set by step 1, so a window that rounds to zero
days opens and closes on the same day.
"""

from __future__ import annotations

import logging
from typing import List

from inocsim.config import SimulationConfig
from inocsim.population import Population
from inocsim.utils import round_days

logger = logging.getLogger(__name__)


def treat_host(population: Population, host_id: int, day: int, config: SimulationConfig) -> int:
    """Clear the host's inoculations and start prophylaxis. Returns n cleared."""
    cfg = config.treatment
    host = population.host(host_id)
    n_cleared = population.clear_host(host_id)
    host.on_prophylaxis = True
    host.prophylaxis_end_day = day + round_days(cfg.prophylaxis_days, cfg.day_rounding)
    host.pending_treatment_day = None
    logger.debug(
        "day %d: host %d treated, %d inoculations cleared, prophylaxis until day %d",
        day, host_id, n_cleared, host.prophylaxis_end_day,
    )
    return n_cleared


def step_hosts(day: int, population: Population, config: SimulationConfig) -> List[int]:
    """Apply due treatments and end elapsed prophylaxis windows.

    Returns:
        Ids of hosts treated on this call.
    """
    treated = []
    for host in population.hosts:
        if host.pending_treatment_day is not None and day >= host.pending_treatment_day:
            treat_host(population, host.host_id, day, config)
            treated.append(host.host_id)

        if host.prophylaxis_end_day is not None and day >= host.prophylaxis_end_day:
            host.on_prophylaxis = False
            host.prophylaxis_end_day = None
            logger.debug("day %d: host %d prophylaxis ended", day, host.host_id)
    return treated
