#!/usr/bin/env python3
"""
Startup script for the WhatsApp order bot.

Usage:
    # Run on PORT from the environment (default 3000)
    python run.py

    # Run with custom port
    python run.py --port 8001

    # Run with reload for development
    python run.py --reload
"""

import argparse

from dotenv import load_dotenv


def main():
    load_dotenv()

    from order_bot import config

    parser = argparse.ArgumentParser(
        description="Run the WhatsApp order bot"
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=config.PORT,
        help=f"Port to run on (default: {config.PORT})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args()

    print(f"\n{'=' * 50}")
    print("Starting: WhatsApp Order Bot")
    print(f"Port:     {args.port}")
    print(f"Sheets:   {'configured' if config.is_sheets_configured() else 'NOT configured'}")
    print(f"Twilio:   {'configured' if config.is_twilio_configured() else 'mock mode'}")
    print(f"{'=' * 50}\n")

    import uvicorn

    uvicorn.run(
        "order_bot.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
