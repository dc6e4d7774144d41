from openchirp_pubsub.cli import main

raise SystemExit(main())
