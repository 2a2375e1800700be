from osprov.app import cli_main

cli_main()
