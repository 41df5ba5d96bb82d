"""Example script that adds a spiral layer on the server and saves the SVG."""
from __future__ import annotations

import requests

BASE_URL = "http://localhost:8000"


def main() -> None:
    res = requests.post(
        f"{BASE_URL}/api/layers",
        json={"type": "spiral", "params": {"seed": 4242, "loops": 14, "noise_amp": 6.0}},
        timeout=5,
    )
    res.raise_for_status()
    layer = res.json()
    print(f"{layer['name']}: {layer['line_count']} line(s), {layer['point_count']} point(s)")

    config = {
        "bypassAll": False,
        "steps": [
            {"id": "linesimplify", "tolerance": 0.05, "mode": "polyline"},
            {"id": "linesort", "method": "nearest", "direction": "none", "grouping": "layer"},
            {"id": "filter", "minLength": 1, "maxLength": 0, "removeTiny": True},
        ],
    }
    res = requests.post(f"{BASE_URL}/api/optimize", json={"config": config}, timeout=30)
    res.raise_for_status()
    for line in res.json()["summaries"]:
        print(line)

    res = requests.get(f"{BASE_URL}/api/export.svg", params={"precision": 3}, timeout=30)
    res.raise_for_status()
    with open("spiral.svg", "w", encoding="utf-8") as fh:
        fh.write(res.text)
    print("Wrote spiral.svg")


if __name__ == "__main__":
    main()
