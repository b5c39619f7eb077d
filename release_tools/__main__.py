from release_tools.cli import main

main()
