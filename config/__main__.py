"""Command line interface for checking configuration loading"""
import sys

from . import get_settings, SettingsError


def main():
    """Display loaded configuration"""
    try:
        settings = get_settings()
    except SettingsError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings.items():
        # Never echo the API key
        if key == 'api_key':
            value = '<set>' if value else '<empty>'
        print(f"{key}: {value}")


if __name__ == "__main__":
    main()
