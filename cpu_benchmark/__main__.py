from .benchmark import main

raise SystemExit(main())
