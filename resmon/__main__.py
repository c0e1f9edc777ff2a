from resmon.cli import resmon

resmon()
