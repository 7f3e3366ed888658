"""Command line entry point for offline reverse geocoding."""

from __future__ import annotations

import argparse
import gzip
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from rgeo.config import Settings
from rgeo.data.codec import FeatureCollection, encode_feature_stream
from rgeo.data.datasets import dataset_from_path, load_dataset
from rgeo.engine import Rgeo
from rgeo.errors import LocationNotFound, RgeoError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run_lookup(settings: Settings, lon: float, lat: float, *, snap: bool) -> int:
    if not settings.datasets:
        print("error: no datasets given (use --dataset or RGEO_DATASETS)", file=sys.stderr)
        return 2

    geocoder = Rgeo(*(dataset_from_path(path) for path in settings.datasets), settings=settings)
    if settings.eager_build:
        geocoder.build()

    try:
        if snap:
            location = geocoder.reverse_geocode_snapping(lon, lat)
        else:
            location = geocoder.reverse_geocode(lon, lat)
    except LocationNotFound:
        logger.info("No region found for (%.5f, %.5f)", lon, lat)
        print("unknown location")
        return 1

    print(json.dumps(location.to_dict(), ensure_ascii=False, indent=2))
    return 0


def run_convert(inputs: Sequence[Path], output: Path, *, merge: Optional[Path] = None) -> int:
    features: FeatureCollection = []
    for path in inputs:
        features.extend(load_dataset(path, merge=merge))

    output.parent.mkdir(parents=True, exist_ok=True)
    opener = gzip.open if output.suffix == ".gz" else open
    with opener(output, "wb") as fp:
        count = encode_feature_stream(features, fp)
    logger.info("Wrote %d features to %s", count, output)
    return 0


def _non_negative_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if not value >= 0.0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {text}")
    return value


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="rgeo", description="Offline reverse geocoding")
    commands = parser.add_subparsers(dest="command", required=True)

    lookup = commands.add_parser("lookup", help="Find the region holding a coordinate")
    lookup.add_argument("lon", type=float, help="Longitude in degrees")
    lookup.add_argument("lat", type=float, help="Latitude in degrees")
    lookup.add_argument(
        "--dataset",
        action="append",
        type=Path,
        default=[],
        help="Feature stream or GeoJSON file (repeatable, overrides RGEO_DATASETS)",
    )
    lookup.add_argument("--snap", action="store_true", help="Fall back to the nearest border within the snap distance")
    lookup.add_argument("--snap-km", type=_non_negative_float, default=None, help="Snap distance in kilometres")

    convert = commands.add_parser("convert", help="Convert GeoJSON files into a feature stream")
    convert.add_argument("inputs", nargs="+", type=Path, help="GeoJSON or feature stream files")
    convert.add_argument("-o", "--output", type=Path, required=True, help="Output path (.gz to compress)")
    convert.add_argument(
        "--merge",
        type=Path,
        default=None,
        help="GeoJSON file whose country properties (matched on ADMIN) are added to each input feature",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = Settings.load()
    configure_logging(settings.log_level)

    try:
        if args.command == "convert":
            return run_convert(args.inputs, args.output, merge=args.merge)

        overrides = {}
        datasets: List[Path] = args.dataset
        if datasets:
            overrides["datasets"] = tuple(datasets)
        if args.snap_km is not None:
            overrides["snap_distance_km"] = args.snap_km
        return run_lookup(replace(settings, **overrides), args.lon, args.lat, snap=args.snap)
    except (RgeoError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
