"""
PinDistance CLI entrypoint.

This CLI is a terminal stand-in for the map screen, intended for demos and debugging:
- `tap` drops a pin and runs one full permission-gated distance check against the
  simulated positioning service (dialogs are rendered on the terminal)
- `distance` prints the geodesic distance between two coordinates
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Callable

from pindistance.config.settings import get_settings
from pindistance.core.geo import geodesic_m, haversine_m
from pindistance.core.logging import configure_logging
from pindistance.domain.models import AuthorizationStatus, GeoPoint
from pindistance.geocoding.reverse import build_reverse_geocoder
from pindistance.location.dialogs import ALLOW, CANCEL, ConsoleDialogPresenter
from pindistance.location.locator import PermissionGatedLocator
from pindistance.location.positioning import SimulatedPositioningService
from pindistance.ui.map_screen import InMemoryMapDisplay, MapScreen

STATUS_CHOICES = [s.value for s in AuthorizationStatus]


def _scripted_input(answer: str) -> Callable[[str], str]:
    """Answer every multi-action dialog with the same label."""
    return lambda _prompt: answer


def _print_stderr(line: str) -> None:
    print(line, file=sys.stderr)


def _stderr_prompt_input(prompt: str) -> str:
    """`input()` that writes its prompt to stderr, keeping stdout for JSON."""
    sys.stderr.write(prompt)
    sys.stderr.flush()
    return input("")


def _bounded_float(name: str, limit: float) -> Callable[[str], float]:
    def parse(raw: str) -> float:
        try:
            value = float(raw)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid {name}: {raw!r}") from None
        if not -limit <= value <= limit:
            raise argparse.ArgumentTypeError(f"{name} must be between -{limit:g} and {limit:g}, got {raw}")
        return value

    return parse


_latitude = _bounded_float("latitude", 90)
_longitude = _bounded_float("longitude", 180)


def _cmd_tap(args: argparse.Namespace) -> int:
    """Handle the `tap` subcommand."""
    settings = get_settings()
    if args.busy_policy:
        settings = settings.model_copy(
            update={"locator": settings.locator.model_copy(update={"busy_policy": args.busy_policy})}
        )
    if args.geocoder:
        settings = settings.model_copy(
            update={"geocoding": settings.geocoding.model_copy(update={"provider": args.geocoder})}
        )

    sim = settings.simulator
    status = AuthorizationStatus.parse(args.status or sim.authorization_status)
    position: GeoPoint | None = None
    if args.no_fix:
        position = None
    elif args.current_lat is not None and args.current_lon is not None:
        position = GeoPoint(lat=args.current_lat, lon=args.current_lon)
    elif sim.position is not None:
        position = GeoPoint(lat=sim.position.lat, lon=sim.position.lon)

    prompt_grants = sim.prompt_grants if args.prompt_grants is None else args.prompt_grants == "grant"
    service = SimulatedPositioningService(status=status, position=position, prompt_grants=prompt_grants)

    # Keep stdout clean for --json; dialogs go to stderr there.
    output_fn = _print_stderr if args.json else print
    if args.answer:
        input_fn = _scripted_input(args.answer)
    else:
        input_fn = _stderr_prompt_input if args.json else input
    presenter = ConsoleDialogPresenter(input_fn=input_fn, output_fn=output_fn)
    locator = PermissionGatedLocator.from_settings(settings, service, presenter, build_reverse_geocoder(settings))
    screen = MapScreen(InMemoryMapDisplay(), locator, settings.map)
    screen.load()

    screen.handle_tap(GeoPoint(lat=args.lat, lon=args.lon))
    service.run_pending()

    outcome = screen.last_outcome
    payload: dict[str, Any] = {"status": "pending" if outcome is None else ("ok" if outcome[0] else "failed")}
    if outcome is not None and outcome[1] is not None:
        payload["error"] = {"code": outcome[1].code, "message": str(outcome[1])}
    if outcome is not None and outcome[0] and locator.last_report is not None:
        payload["report"] = locator.last_report.model_dump(mode="json")

    if args.json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    elif outcome is None:
        print("Distance check is still waiting for a location fix.")
    elif "error" in payload:
        print(f"Distance check failed: {payload['error']['message']}")

    if outcome is None:
        return 2
    return 0 if outcome[0] else 1


def _cmd_distance(args: argparse.Namespace) -> int:
    a = GeoPoint(lat=args.from_lat, lon=args.from_lon)
    b = GeoPoint(lat=args.to_lat, lon=args.to_lon)
    geodesic = geodesic_m(a, b)
    haversine = haversine_m(a, b)

    if args.json:
        print(
            json.dumps(
                {"from": a.model_dump(), "to": b.model_dump(), "geodesic_m": geodesic, "haversine_m": haversine},
                indent=2,
            )
        )
        return 0
    print(f"{round(geodesic)} m (geodesic, WGS-84); {round(haversine)} m (haversine)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the PinDistance CLI."""
    parser = argparse.ArgumentParser(prog="pindistance")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    sub = parser.add_subparsers(dest="command", required=True)

    tap = sub.add_parser("tap", help="Drop a pin and measure the distance from the simulated device.")
    tap.add_argument("--lat", required=True, type=_latitude)
    tap.add_argument("--lon", required=True, type=_longitude)
    tap.add_argument("--status", choices=STATUS_CHOICES, default=None, help="Initial authorization status")
    tap.add_argument("--current-lat", type=_latitude, default=None)
    tap.add_argument("--current-lon", type=_longitude, default=None)
    tap.add_argument("--no-fix", action="store_true", help="Simulate a device that never gets a fix")
    tap.add_argument(
        "--prompt-grants",
        choices=["grant", "deny"],
        default=None,
        help="How the simulated OS prompt answers after the permission dialog is accepted",
    )
    tap.add_argument(
        "--answer",
        choices=[ALLOW, CANCEL],
        default=None,
        help="Answer the permission dialog non-interactively",
    )
    tap.add_argument("--busy-policy", choices=["supersede", "reject", "replace"], default=None)
    tap.add_argument("--geocoder", choices=["none", "nominatim"], default=None)
    tap.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    tap.set_defaults(func=_cmd_tap)

    dist = sub.add_parser("distance", help="Geodesic distance between two coordinates.")
    dist.add_argument("--from-lat", required=True, type=_latitude)
    dist.add_argument("--from-lon", required=True, type=_longitude)
    dist.add_argument("--to-lat", required=True, type=_latitude)
    dist.add_argument("--to-lon", required=True, type=_longitude)
    dist.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    dist.set_defaults(func=_cmd_distance)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m pindistance.cli`."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
