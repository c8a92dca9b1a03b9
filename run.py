#!/usr/bin/env python3
"""
AgroChain services
Runs one of harvest-service, supply-service or billing-service, selected by SERVICE_NAME.
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import application factory
from agrochain import create_app, init_database

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {
    'harvest-service': 5001,
    'supply-service': 5002,
    'billing-service': 5003,
}


def main():
    """Main application entry point."""
    env = os.environ.get('FLASK_ENV', 'production')
    service_name = os.environ.get('SERVICE_NAME', 'harvest-service')

    logger.info(f"Starting {service_name} in {env} mode")

    app = create_app(env, service_name=service_name)

    # Initialize database tables
    init_database(app)

    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', DEFAULT_PORTS.get(service_name, 5000)))
    debug = env == 'development'

    logger.info(f"Starting {service_name} on {host}:{port}")

    app.run(
        host=host,
        port=port,
        debug=debug,
        threaded=True
    )


if __name__ == '__main__':
    main()
