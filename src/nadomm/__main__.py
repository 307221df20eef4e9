from nadomm.cli import main

main()
