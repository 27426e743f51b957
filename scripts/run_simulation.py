#!/usr/bin/env python3
"""Headless INOCSIM run: fixed frame time, text summary at the end.

Usage:
    python3 scripts/run_simulation.py --days 365
    python3 scripts/run_simulation.py --config configs/default.yaml \\
        --override configs/scenarios/no_incidence.yaml --seed 7 --perf
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from inocsim.config import config_to_dict, default_config, load_config
from inocsim.model import run_simulation
from inocsim.perf import PerfMonitor
from inocsim.types import HostStatus


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Run the inoculation/treatment model without a front-end.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument('--config', type=Path, default=None,
                        help='Base YAML configuration (defaults built in if omitted)')
    parser.add_argument('--override', type=Path, default=None,
                        help='Override YAML merged on top of --config')
    parser.add_argument('--days', type=int, default=365, help='Simulated days to run')
    parser.add_argument('--dt', type=float, default=1.0 / 60.0,
                        help='Wall seconds per tick')
    parser.add_argument('--seed', type=int, default=None, help='Override the config seed')
    parser.add_argument('--perf', action='store_true', help='Print component timings')
    parser.add_argument('--json', action='store_true', help='Print the summary as JSON')
    parser.add_argument('-v', '--verbose', action='count', default=0)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING - 10 * min(args.verbose, 2),
        format='%(asctime)s %(name)s %(levelname)s: %(message)s',
    )

    if args.config is not None:
        config = load_config(args.config, override_path=args.override)
    else:
        config = default_config()

    perf = PerfMonitor(enabled=args.perf)
    result = run_simulation(config, n_days=args.days, dt=args.dt, seed=args.seed, perf=perf)

    if result.n_days:
        final = {s.name: int(result.status_series(s)[-1]) for s in HostStatus}
        peak = {s.name: int(result.status_series(s).max()) for s in HostStatus}
    else:
        final, peak = {}, {}
    summary = {
        'days': result.n_days,
        'final_status': final,
        'peak_status': peak,
        'final_inoculations': result.final_inoculations,
        'new_infections': result.total_new_infections,
        'treatment_requests': result.total_treatment_requests,
        'treatments': result.total_treatments,
        'transitions': result.transitions,
        'config': config_to_dict(config),
    }
    if args.perf:
        summary['perf'] = perf.summary(result.n_days)

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print("=" * 60)
        print(f"INOCSIM: {config.simulation.n_hosts} hosts, {result.n_days} days")
        print("=" * 60)
        print(f"  {'status':<12} {'final':>5} {'peak':>5}")
        for name, n in final.items():
            print(f"  {name:<12} {n:>5} {peak[name]:>5}")
        live = ', '.join(f"{k.lower()} {v}" for k, v in result.final_inoculations.items())
        print(f"Live inoculations:  {live}")
        print(f"New infections:     {result.total_new_infections}")
        print(f"Treatment requests: {result.total_treatment_requests}")
        print(f"Treatments:         {result.total_treatments}")
        for edge, n in result.transitions.items():
            print(f"  {edge:<14} {n:>6}")

        if args.perf:
            print(perf.report(result.n_days))
    return 0


if __name__ == '__main__':
    sys.exit(main())
