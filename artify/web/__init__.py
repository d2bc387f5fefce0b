"""Streamlit front end for Artify.

``artify-web`` launches the page in :mod:`artify.web.app`; any extra command
line arguments go to ``streamlit run`` (for example ``--server.port 8502``).
"""

import sys
from pathlib import Path
from typing import List, Optional

APP_PATH = Path(__file__).resolve().parent / "app.py"


def run_web_app(argv: Optional[List[str]] = None) -> None:
    """Start the Streamlit server for the Artify page.

    Args:
        argv: Extra ``streamlit run`` options, defaults to the process arguments
    """
    try:
        from streamlit.web import cli as st_cli
    except ImportError as e:
        raise ImportError("Streamlit is required to run the web app. Install it with 'pip install artify[web]'") from e

    extra = sys.argv[1:] if argv is None else list(argv)
    sys.argv = ["streamlit", "run", str(APP_PATH)] + extra
    sys.exit(st_cli.main())
