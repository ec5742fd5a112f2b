import sys

from listing_crop_kit.app import main

sys.exit(main())
