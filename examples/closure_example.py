"""
Cash Closure Examples for the cashdesk SDK
Demonstrates configuring the SDK and closing a shift
"""

import logging

from cashdesk import (
    CashClosureService,
    ConfigLoader,
    ConfigValidator,
    EventBus,
    PhysicalCount,
    SummaryUnavailable,
    ValidationError,
)
from cashdesk.events import CLOSURE_DISCREPANCY, CLOSURE_SAVED
from cashdesk.utils import format_cop


# =============================================================================
# Example 1: Configuration
# =============================================================================

def load_config_example():
    """
    Load configuration from a file, environment and runtime overrides

    Priority: programmatic > environment > file

    export CASHDESK_API_URL="https://api.gym-backoffice.co/api"
    export CASHDESK_AUTH_TOKEN="..."
    """
    loader = ConfigLoader()
    return loader.load(
        file="./config/cashdesk.json",
        env=True,
        config={
            "timeout": 60000,
            "audit_log_path": "./logs/cashdesk-audit.log",
            "pdf_output_dir": "./cierres",
        },
    )


def validation_example() -> None:
    """Validate configuration before use"""
    validator = ConfigValidator()

    result = validator.validate({"base_url": "not-a-url", "timeout": 10})

    if not result.valid:
        print("Configuration validation failed:")
        for error in result.errors:
            print(f"  - {error.field}: {error.message}")


# =============================================================================
# Example 2: Closing a shift
# =============================================================================

def close_shift_example(config) -> None:
    """Preview and submit the closure for the current shift"""
    events = EventBus()
    events.subscribe(
        CLOSURE_SAVED,
        lambda name, closure: print(f"Saved closure {closure.id} for {closure.shift_date}"),
    )
    events.subscribe(
        CLOSURE_DISCREPANCY,
        lambda name, closure: print(f"Review needed: {closure.discrepancy_notes}"),
    )

    count = PhysicalCount(
        shift_start="2026-10-19T06:00:00",
        cash_counted=498000,
        nequi_counted=200000,
        notes="Cierre turno mañana",
    )

    with CashClosureService.from_config(config, events=events) as service:
        try:
            snapshot = service.load_shift(count.shift_start)
            print(f"Sales so far: {format_cop(snapshot.summary.total_sales)}")

            preview = service.preview(count)
            for tender, difference in preview.differences.discrepant_tenders().items():
                print(f"  {tender.label}: {format_cop(difference)}")

            closure = service.submit(count, user_id=7)
            print(f"Total difference: {format_cop(closure.differences.total)}")

            path = service.download_pdf(closure.id)
            print(f"PDF written to {path}")
        except ValidationError as e:
            print(f"Fix the count first: {e.reason} ({e.field})")
        except SummaryUnavailable as e:
            print(f"Sales are unavailable, try again: {e.get_description()}")


# =============================================================================
# Run Examples
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("=== cashdesk Examples ===\n")

    print("1. Configuration Validation:")
    validation_example()
    print()

    print("2. Close Shift:")
    close_shift_example(load_config_example())
