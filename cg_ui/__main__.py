from cg_ui.cli.main import main

main()
