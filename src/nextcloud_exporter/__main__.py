from nextcloud_exporter.cli import main

main(prog_name="nextcloud-exporter")
