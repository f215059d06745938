from retirement_sim.cli import main

raise SystemExit(main())
