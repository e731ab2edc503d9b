#!/usr/bin/env python3
"""
Entry point for the PiTherm temperature logging and alerting server
"""

import logging
import sys

from config.settings import PiThermConfig
from core.errors import ConfigurationError
from core.monitor import TemperatureMonitor

logger = logging.getLogger(__name__)


def main():
    try:
        config = PiThermConfig()
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)
    TemperatureMonitor(config).run()


if __name__ == "__main__":
    main()
