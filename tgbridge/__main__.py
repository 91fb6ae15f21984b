from tgbridge.cli import main

main()
