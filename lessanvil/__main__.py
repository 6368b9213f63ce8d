import sys

from lessanvil.cli import main

sys.exit( main() )
