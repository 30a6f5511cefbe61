#!/usr/bin/env python3
"""
Photo Booth Print Compositor - Development Runner
Run this script to start the development server
"""

import os
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Set environment defaults
os.environ.setdefault('FLASK_APP', 'printbooth')
os.environ.setdefault('FLASK_ENV', 'development')

try:
    from printbooth import create_app

    def main():
        """Main entry point"""
        print("=" * 60)
        print("Photo Booth Print Compositor - Development Server")
        print("=" * 60)

        # Create and configure the app
        app = create_app()

        # Print startup info
        print(f"Environment: {app.config.get('FLASK_ENV', 'unknown')}")
        print(f"Debug mode: {app.config.get('DEBUG', False)}")
        print(f"Log level: {app.config.get('LOG_LEVEL', 'INFO')}")
        print(f"Output folder: {app.config.get('OUTPUT_FOLDER')}")

        events = app.config.get('EVENTS', {})
        if not events:
            print(f"⚠️  No events loaded from {app.config.get('EVENTS_FILE')}")
            print("   Every request will be rejected with 404 until an event is configured.")

        # Check for logo assets
        missing_logos = [event.slug for event in events.values()
                         if event.logo_path and not Path(event.logo_path).is_file()]
        if missing_logos:
            print(f"⚠️  Missing logo assets for: {', '.join(missing_logos)}")
            print("   Prints for these events are composed without a logo.")

        print("-" * 60)
        print("Starting development server...")
        print("Open your browser to: http://localhost:5000/api/layouts")
        print("Press Ctrl+C to stop")
        print("-" * 60)

        # Run the development server
        app.run(
            host='0.0.0.0',
            port=5000,
            debug=app.config.get('DEBUG', True),
            use_reloader=True,
            threaded=True
        )

    if __name__ == '__main__':
        main()

except ImportError as e:
    print(f"❌ Import error: {e}")
    print("\nPlease install the required dependencies:")
    print("  pip install -e .")
    sys.exit(1)
