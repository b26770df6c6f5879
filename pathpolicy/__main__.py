from pathpolicy.cli import main

raise SystemExit(main())
