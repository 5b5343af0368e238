import sys

from bb_prover.cli import main

sys.exit(main())
