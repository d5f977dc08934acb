#!/usr/bin/env python3
"""Configuration validation script.

Validates the merged settings (defaults, config/speedrun.yaml) and, when
paths are given, import documents.

Usage:
    python scripts/validate_config.py [import_file ...]
"""

import sys
from pathlib import Path
from typing import Any

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from speedrun_app.config.loader import ConfigLoader
from speedrun_app.config.validation import ConfigValidator, ValidationError
from speedrun_app.data.importer import load_import_file
from speedrun_app.errors import MalformedInputError
from speedrun_app.logging import configure_logging_from_config
from speedrun_app.utils.time import format_duration_long


def validate_settings(config: dict[str, Any]) -> list[ValidationError]:
    """Validate the merged settings."""
    return ConfigValidator.validate_config(config)


def validate_import_file(path: str) -> bool:
    """Parse an import document and report what it would write."""
    print(f"\nValidating import document {path}...")

    try:
        document = load_import_file(path)
    except MalformedInputError as e:
        print(f"  Invalid: {e}")
        if e.expected_format:
            print(f"  Expected format: {e.expected_format}")
        return False

    print(f"  {document.title} / {document.category}")
    print(f"  Attempts: {document.attempts}, completed: {document.completed}")
    print(f"  Split names: {', '.join(document.split_names)}")
    if document.personal_best is None:
        print("  No personal best")
    else:
        pb = document.personal_best
        print(
            f"  Personal best: attempt {pb.attempt_num}, "
            f"{len(pb.durations_ns)} splits, {format_duration_long(pb.total_ns)}"
        )
    return True


def main():
    """Main validation function."""
    print("Validating speedrun configuration...")

    all_valid = True

    config = ConfigLoader.create().merge_config()
    errors = validate_settings(config)
    if errors:
        print(f"Found {len(errors)} validation errors:")
        for error in errors:
            print(f"  - {error.field}: {error.message} (value: {error.value})")
        all_valid = False
    else:
        print("Settings are valid")
        configure_logging_from_config(config)

    for path in sys.argv[1:]:
        if not validate_import_file(path):
            all_valid = False

    if all_valid:
        print("\nAll configuration validation passed!")
        sys.exit(0)
    else:
        print("\nConfiguration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
