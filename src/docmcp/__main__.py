from docmcp.cli import main

main()
