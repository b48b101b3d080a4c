"""
Run the ambulance dispatch simulation.

    python run.py serve --port 8080
    python run.py run --seconds 30 --speed 4 --output results.csv
"""

import argparse
import logging
import time

from ambsim.simulator.service import SimulationService
from ambsim.utils.logging import LOG_LEVEL, configure_logging
from ambsim.web.app import create_app

logger = logging.getLogger("ambsim.run")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ambulance dispatch simulator")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--verbose", action="store_true", help="Log every dispatch event")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Serve the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)

    run = sub.add_parser("run", help="Run headless for a fixed wall-clock duration")
    run.add_argument("--seconds", type=float, default=30.0)
    run.add_argument("--hospitals", type=int, default=2)
    run.add_argument("--ambulances", type=int, default=4)
    run.add_argument("--speed", type=int, default=1)
    run.add_argument("--seed", type=int, default=None)
    run.add_argument("--output", default=None, help="CSV file for per-patient results")
    return parser.parse_args(argv)


def run_headless(service: SimulationService, args) -> None:
    service.init({
        "hospitals": args.hospitals,
        "ambulances": args.ambulances,
        "speed": args.speed,
        "seed": args.seed,
    })
    service.start()
    try:
        time.sleep(args.seconds)
    finally:
        service.stop()

    if service.last_error is not None:
        logger.error("Simulation stopped early: %s", service.last_error)

    summary = service.summary()
    print("\n===== Final Statistics =====")
    print(f"Simulated time: {service.status()['time']}")
    print(f"Patients delivered: {summary['completed']}")
    print(f"Average call-to-hospital time: {summary['avgTime']:.1f}")

    if args.output:
        service.reporter.patients_frame().to_csv(args.output, index=False)
        print(f"Per-patient results written to {args.output}")


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.log_level or ("INFO" if args.verbose else LOG_LEVEL))
    service = SimulationService(verbose=args.verbose)

    if args.command == "serve":
        app = create_app(service)
        try:
            app.run(host=args.host, port=args.port, threaded=True)
        finally:
            service.stop()
    else:
        run_headless(service, args)


if __name__ == "__main__":
    main()
