import sys
from pathlib import Path

# Add repo root so "import mockgate...." works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
