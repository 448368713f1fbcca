from substrate_payouts.cli import main

main()
