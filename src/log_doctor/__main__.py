"""Module entrypoint.

Allows:
    python -m log_doctor --logfile app.log --outdir out --configfile config.yaml
"""

from __future__ import annotations

from log_doctor.cli import main

if __name__ == "__main__":
    main()
