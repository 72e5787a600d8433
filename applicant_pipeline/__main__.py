import sys

from applicant_pipeline.cli import main

sys.exit(main())
