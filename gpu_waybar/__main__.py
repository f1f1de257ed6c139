import sys

from gpu_waybar.cli import main

sys.exit(main())
