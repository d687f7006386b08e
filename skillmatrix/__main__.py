from skillmatrix.cli import main

raise SystemExit(main())
