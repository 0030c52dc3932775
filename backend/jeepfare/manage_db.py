#!/usr/bin/env python3
"""
Reference data management utility for the jeepney fare engine.

Usage:
    jeepfare-db init                      - Initialize database with default tables
    jeepfare-db show                      - Show routes and legacy segment fares
    jeepfare-db update                    - Update a legacy segment fare
    jeepfare-db reset                     - Reset to default tables
    jeepfare-db fare FROM TO [ROUTE_ID]   - Compute a fare
"""

import sys
from decimal import Decimal, InvalidOperation
from urllib.parse import urlparse
import os

from jeepfare.config import settings
from jeepfare.database import DatabaseManager
from jeepfare.errors import FareEngineError
from jeepfare.services.engine import build_engine, format_currency


def init_database():
    """Initialize database with default reference data."""
    print("Initializing database...")
    db = DatabaseManager(settings.DATABASE_URL)
    db.init_default_reference_data()
    print("Database initialized successfully!")
    show_rules()


def show_rules():
    """Display routes and legacy segment fares."""
    db = DatabaseManager(settings.DATABASE_URL)
    reference = db.load_reference_data()

    print("\n" + "="*60)
    print("ROUTES")
    print("="*60)
    for route in reference.routes:
        print(f"Route {route.route_id}: {route.name}")
        for checkpoint in route.checkpoints:
            print(f"  {checkpoint.sequence_index:>2}. {checkpoint.name:<22} id={checkpoint.id}")

    print("\n" + "="*60)
    print("LEGACY SEGMENT FARES")
    print("="*60)
    print(f"{'From':<22} {'To':<22} {'Fare':<10}")
    print("-"*54)
    for segment in reference.segments:
        print(f"{segment.from_checkpoint:<22} {segment.to_checkpoint:<22} "
              f"{format_currency(segment.fare, settings.CURRENCY_SYMBOL):<10}")
    print("-"*54)
    print(f"Total segments: {len(reference.segments)}")
    print(f"\nBase fare: {format_currency(reference.base_fare, settings.CURRENCY_SYMBOL)}")
    print(f"Incremental fare: {format_currency(reference.incremental_fare, settings.CURRENCY_SYMBOL)}")
    print("="*60)


def update_rule():
    """Interactive legacy segment fare update."""
    print("\nUPDATE SEGMENT FARE")
    print("-"*30)

    db = DatabaseManager(settings.DATABASE_URL)
    sequence = db.get_fallback_sequence()
    print(f"Checkpoints: {', '.join(sequence)}")

    from_checkpoint = input("Enter from checkpoint: ").strip()
    to_checkpoint = input("Enter to checkpoint: ").strip()

    if from_checkpoint not in sequence or to_checkpoint not in sequence:
        print("Invalid checkpoint names! Must be one of the checkpoints listed above.")
        return

    current = db.get_all_segment_fares().get((from_checkpoint, to_checkpoint))
    if current is not None:
        print(f"Current fare: {current}")
    else:
        print("No existing segment for this pair.")

    try:
        new_fare = Decimal(input("Enter new fare: "))
    except InvalidOperation:
        print("Invalid input! Please enter a number.")
        return

    if new_fare <= 0:
        print("Fare must be positive!")
        return

    fare = db.update_segment_fare(from_checkpoint, to_checkpoint, new_fare)
    print(f"✓ Updated fare for {from_checkpoint} → {to_checkpoint} to {fare}")


def reset_database():
    """Reset database to default reference data."""
    confirm = input("Are you sure you want to reset all reference data to defaults? (yes/no): ")

    if confirm.lower() == 'yes':
        parsed = urlparse(settings.DATABASE_URL)
        if parsed.scheme.startswith("sqlite"):
            db_path = settings.DATABASE_URL.split("sqlite:///", 1)[-1]
            if os.path.exists(db_path):
                os.remove(db_path)
                print("Database deleted.")
        else:
            print("Reset only supports SQLite datastores.")
            return

        init_database()
        print("Database reset to defaults!")
    else:
        print("Reset cancelled.")


def compute_fare(args=None):
    """Compute a fare for FROM TO [ROUTE_ID]."""
    args = args if args is not None else sys.argv[2:]
    if len(args) < 2:
        print("Usage: jeepfare-db fare FROM TO [ROUTE_ID]")
        return

    try:
        route_id = int(args[2]) if len(args) > 2 else None
    except ValueError:
        print("Invalid route id! Please enter a number.")
        return

    engine = build_engine(settings)
    try:
        result = engine.compute_fare(args[0], args[1], route_id)
    except FareEngineError as e:
        print(f"Error: {e}")
        return

    print(f"{result.from_checkpoint} → {result.to_checkpoint}: "
          f"{engine.format_currency(result.final_fare)} ({result.method.value})")


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print(__doc__)
        return

    command = sys.argv[1].lower()

    commands = {
        'init': init_database,
        'show': show_rules,
        'update': update_rule,
        'reset': reset_database,
        'fare': compute_fare,
    }

    if command in commands:
        commands[command]()
    else:
        print(f"Unknown command: {command}")
        print(__doc__)


if __name__ == "__main__":
    main()
