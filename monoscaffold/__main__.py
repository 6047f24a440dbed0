"""Allow ``python -m monoscaffold``."""

import sys

from monoscaffold.pipeline import main

sys.exit(main())
