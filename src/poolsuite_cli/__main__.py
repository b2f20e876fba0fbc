from poolsuite_cli.cli import main

main()
