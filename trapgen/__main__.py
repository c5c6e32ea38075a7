import sys

from trapgen.cli_trap_emitter import main

sys.exit(main())
