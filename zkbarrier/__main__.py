"""Command line interface for running one participant of the barrier."""
import argparse
import logging
import os
import random
import sys
import time
import typing

from .errors import FatalConnectionFailure
from .gate import Gate
from .layout import Variant
from .nested import NestedStageController
from .session import BarrierSession
from .utils import DEFAULT_HOSTS, connect

logger = logging.getLogger("zkbarrier")

VARIANTS = [variant.value for variant in Variant] + ["gate"]


def parse_args(argv: typing.Optional[typing.List[str]] = None) -> argparse.Namespace:
    """Parse and verify the command line arguments."""
    parser = argparse.ArgumentParser(prog="zkbarrier", description="Run one participant of the distributed barrier.")
    parser.add_argument(
        "--hosts",
        default=os.environ.get("ZKBARRIER_HOSTS", DEFAULT_HOSTS),
        help="ZooKeeper hosts (default: $ZKBARRIER_HOSTS or %(default)s)",
    )
    parser.add_argument("--quorum", type=int, default=1, help="Number of participants to wait for")
    parser.add_argument("--variant", choices=VARIANTS, default=Variant.DOUBLE.value)
    parser.add_argument("--root", default="/b1", help="Barrier root path")
    parser.add_argument("--subgroup", help="Subgroup for restricted and nested barriers")
    parser.add_argument("--stages", nargs="+", default=["level1", "level2", "level3"], help="Nested barrier stages")
    parser.add_argument("--starter", action="store_true", help="Open the gate for others and close it after the work")
    parser.add_argument("--identity", help="Participant name prefix (default: host name)")
    parser.add_argument("--work", type=float, default=2.0, help="Maximum seconds of simulated work")
    parser.add_argument("--timeout", type=float, help="Maximum seconds to wait in every barrier phase")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug output")
    args = parser.parse_args(argv)
    if args.quorum < 1:
        parser.error("--quorum has to be positive")
    if args.variant in (Variant.RESTRICTED.value, Variant.NESTED.value) and not args.subgroup:
        parser.error("--subgroup is required by the {} barrier".format(args.variant))
    return args


def simulate_work(max_seconds: float, stage: typing.Optional[str] = None) -> None:
    """Sleep for the random amount of time."""
    seconds = random.uniform(0, max_seconds)
    logger.info("Working for %.1fs%s", seconds, " in stage '{}'".format(stage) if stage else "")
    time.sleep(seconds)


def run_gate(client, args: argparse.Namespace) -> bool:
    """Open the gate as the starter or wait for it to be opened, then work."""
    gate = Gate(client, args.root)
    try:
        if args.starter:
            gate.create()
            simulate_work(args.work)
            gate.remove()
            return True
        if not gate.wait(args.timeout):
            logger.error("Gate '%s' was not opened in time.", args.root)
            return False
        simulate_work(args.work)
        return True
    finally:
        gate.close()


def run_nested(client, args: argparse.Namespace) -> bool:
    """Pass all stages of the nested barrier with work in every one of them."""
    controller = NestedStageController(
        client, args.root, args.subgroup, args.stages, args.quorum, identity=args.identity, timeout=args.timeout
    )
    try:
        return controller.run_stages(lambda stage: simulate_work(args.work, stage))
    finally:
        controller.close()


def run_session(client, args: argparse.Namespace) -> bool:
    """Enter the barrier, work and leave it."""
    session = BarrierSession(
        client,
        args.root,
        args.quorum,
        Variant(args.variant),
        subgroup=args.subgroup,
        identity=args.identity,
        timeout=args.timeout,
    )
    try:
        if not session.enter():
            return False
        simulate_work(args.work)
        return session.leave()
    finally:
        session.close()


def main(argv: typing.Optional[typing.List[str]] = None) -> int:
    """Run one participant and return the process exit code."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    try:
        with connect(args.hosts) as client:
            if args.variant == "gate":
                result = run_gate(client, args)
            elif args.variant == Variant.NESTED.value:
                result = run_nested(client, args)
            else:
                result = run_session(client, args)
    except FatalConnectionFailure as exc:
        logger.error("%s", exc)
        return 1
    if not result:
        logger.error("Barrier '%s' failed.", args.root)
        return 1
    logger.info("Barrier '%s' completed.", args.root)
    return 0


if __name__ == "__main__":
    sys.exit(main())
