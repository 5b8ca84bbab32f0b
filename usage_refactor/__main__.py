from usage_refactor.main import main

raise SystemExit(main())
