from secretsenv.cli.main import main

main()
