"""Package entry point - composition root. Wire dependencies and run the CLI app."""

import logging
import sys

from phpsniff.domain.errors import ConfigurationError
from phpsniff.infrastructure.di.container import PhpSniffContainer
from phpsniff.interface.cli import EXIT_USAGE, CLIDependencies, create_app


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    # Telemetry already prints to the console.
    telemetry_logger = logging.getLogger("phpsniff.telemetry")
    telemetry_logger.addHandler(logging.NullHandler())
    telemetry_logger.propagate = False
    try:
        container = PhpSniffContainer()
    except ConfigurationError as exc:
        print(f"phpsniff: configuration error: {exc}", file=sys.stderr)
        sys.exit(EXIT_USAGE)

    deps = CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        filesystem=container.get_filesystem_gateway(),
        tokenizer=container.get_tokenizer(),
        reporters=container.get_reporters(),
    )

    app = create_app(deps)
    app()


if __name__ == "__main__":
    main()
