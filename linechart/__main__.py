from linechart.cli import main

raise SystemExit(main())
