#!/usr/bin/env python
"""
Run the Sargassum Drift Visualization API server.
"""

import argparse
import logging
import os

from sargassum_core import server, config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Run the API server."""
    parser = argparse.ArgumentParser(description='Run the Sargassum Drift Visualization API server')
    parser.add_argument('--host', type=str, default=config.FLASK_CONFIG['host'], help='Host to bind to')
    parser.add_argument('--port', type=int, default=config.FLASK_CONFIG['port'], help='Port to bind to')
    parser.add_argument('--debug', action='store_true', help='Run in debug mode')
    parser.add_argument('--prediction-file', type=str,
                        help='Serve a local prediction JSON file instead of the prediction API')

    args = parser.parse_args()

    if args.prediction_file:
        config.DATA_SOURCES['prediction']['static_file'] = os.path.abspath(args.prediction_file)

    logger.info(f"Starting API server on {args.host}:{args.port}")
    logger.info(f"Debug mode: {args.debug}")
    if args.prediction_file:
        logger.info(f"Prediction file: {args.prediction_file}")

    server.run_server(host=args.host, port=args.port, debug=args.debug)


if __name__ == '__main__':
    main()
