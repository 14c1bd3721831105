from procfs_exporter.main import main

main()
