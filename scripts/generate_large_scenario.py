"""Random chain-of-junctions track and allocation scenario generator."""
import argparse, random, json, os, sys
from typing import List, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


def build_track_lines(n: int, min_len: int, max_len: int) -> List[str]:
    # J0 -NORMAL/FACING- J1 -NORMAL/FACING- ... one section per consecutive pair
    return [f"{random.randint(min_len, max_len)} J{i} NORMAL J{i+1} FACING" for i in range(n)]


def _seg(i: int, start: int, end: int) -> Dict:
    return {"departing": {"junction": f"J{i}", "branch": "NORMAL"}, "start": start, "end": end}


def build_trains(n: int, lengths: List[int], reach: int) -> Dict[str, List]:
    occupied: List[List[Dict]] = []
    requested: List[List[Dict]] = []
    slots = random.sample(range(len(lengths)), min(n, len(lengths)))
    for i in slots:
        length = lengths[i]
        start = random.randint(1, max(1, length // 2))
        end = min(length - 1, start + random.randint(1, 5))
        if end <= start:
            continue
        occupied.append([_seg(i, start, end)])
        req = [_seg(i, end, length)]
        for k in range(i + 1, min(len(lengths), i + 1 + reach)):
            req.append(_seg(k, 0, lengths[k]))
        requested.append(req)
    return {"occupied": occupied, "requested": requested}


def main():
    p = argparse.ArgumentParser()
    p.add_argument('-Trains', type=int, default=20)
    p.add_argument('-Sections', type=int, default=40)
    p.add_argument('-MinLen', type=int, default=10)
    p.add_argument('-MaxLen', type=int, default=60)
    p.add_argument('-Reach', type=int, default=2, help='whole sections requested beyond the current one')
    p.add_argument('-Seed', type=int, default=42)
    p.add_argument('-Out', type=str, default='large_scenario')
    a = p.parse_args()

    random.seed(a.Seed)
    lines = build_track_lines(a.Sections, a.MinLen, a.MaxLen)
    lengths = [int(line.split()[0]) for line in lines]
    scenario = build_trains(a.Trains, lengths, a.Reach)
    with open(f"{a.Out}.txt", 'w') as f:
        f.write("\n".join(lines) + "\n")
    with open(f"{a.Out}.json", 'w') as f:
        json.dump(scenario, f, indent=2)
    print(f"Wrote {len(lines)} sections -> {a.Out}.txt & {len(scenario['occupied'])} trains -> {a.Out}.json")


if __name__ == '__main__':
    main()
