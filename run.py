import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from redfish_exporter.cli import main


if __name__ == "__main__":
    sys.exit(main())
