from rbuild.cli import main

main()
