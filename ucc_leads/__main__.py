from ucc_leads.cli import main

main()
