"""A simple example of library use."""

import logging

from gansner_layout import Gansner, Size

SZ = Size(10.0, 10.0)


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    g: Gansner[str] = Gansner()
    a = g.add_node("a", SZ)
    b = g.add_node("b", SZ)
    c = g.add_node("c", SZ)
    d = g.add_node("d", SZ)
    g.add_edge(a, b)
    g.add_edge(a, c)
    g.add_edge(b, d)
    g.add_edge(c, d)
    g.add_edge(d, a)

    g.layout_debug()
    for name, pos in g.iter_nodes():
        print(f"{name}: ({pos.x}, {pos.y})")


if __name__ == "__main__":
    main()
