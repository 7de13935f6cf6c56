import sys

from archivist.cli import main

raise SystemExit(main(sys.argv[1:]))
