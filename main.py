import sys
from dataclasses import dataclass

from rich.pretty import pprint

from tagopts import *


@dataclass
class Server:
    port: int = tag("required,name=port,desc=port to listen on", default=8080)
    root: str = tag("optional,desc=directory to serve", default=".")
    verbose: bool = tag("flag,desc=print every request", default=False)
    workers: Unsigned = tag("flag=short,desc=number of workers", default=Unsigned(1))


if __name__ == '__main__':
    pprint(parse(Server(), sys.argv, "serve a directory over http"))
