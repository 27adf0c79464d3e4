from gogroup.cli import main

main()
