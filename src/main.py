import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.config import RailwayConfig
from src.core.errors import RailwayError
from src.core.segment import Segment
from src.core.topology import Track
from src.core.track_reader import read_track
from src.sim.scenario import routes_from_payload, run_scenario
from src.sim.simulator import summarize_allocation

logger = logging.getLogger(__name__)


def load_scenario(track: Track, path: Path) -> Dict[str, List[List[Segment]]]:
    data: Dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    return {
        "occupied": routes_from_payload(track, data.get("occupied", [])),
        "requested": routes_from_payload(track, data.get("requested", [])),
    }


def main(argv: Optional[List[str]] = None) -> None:
    cfg = RailwayConfig()
    ap = argparse.ArgumentParser(description="Allocate track to trains by priority")
    ap.add_argument("--track", type=str, default=cfg.track_file, help="track definition file")
    ap.add_argument("--scenario", type=str, default=None, help="JSON file with occupied/requested routes")
    ap.add_argument("--log-level", type=str, default=cfg.log_level)
    args = ap.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        track = read_track(args.track)
    except (OSError, RailwayError) as e:
        ap.exit(1, f"{e}\n")
    print("Track:")
    print(track)
    if not args.scenario:
        print("Junctions:", ", ".join(sorted(j.name for j in track.junctions())))
        return

    try:
        scenario = load_scenario(track, Path(args.scenario))
        allocated = run_scenario(track, scenario["occupied"], scenario["requested"])["allocated"]
    except (OSError, KeyError, RailwayError) as e:
        ap.exit(1, f"{e}\n")
    logger.info("Allocated track to %d trains", len(allocated))
    for i, route in enumerate(allocated):
        print(f"Train {i}:")
        if not route:
            print("  (nothing allocated)")
        for seg in route:
            print(f"  {seg.first_location()} -> {seg.last_location()} ({seg.length})")
    print("KPIs:", summarize_allocation(scenario["requested"], allocated))


if __name__ == "__main__":
    main()
