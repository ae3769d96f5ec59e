"""Google Product Taxonomy parser.

The seed data generator builds its category tree from a subset of the
Google Product Taxonomy. Each line of a taxonomy file has the form::

    537 - Electronics
    264 - Electronics > Audio
    3622 - Electronics > Audio > Headphones

The number is the taxonomy id and the right-hand side is the full path
from the root.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class TaxonomyNode:
    """A node of the product taxonomy.

    Attributes:
        id: Taxonomy ID (from the taxonomy file).
        name: Last component of the path.
        full_path: Full path, e.g. "Electronics > Computers > Laptops".
        parent_id: Taxonomy ID of the parent, None for a root.
        level: Depth in the tree (1 = root).
    """

    id: int
    name: str
    full_path: str
    parent_id: int | None = None
    level: int = 1
    children: list["TaxonomyNode"] = field(default_factory=list, repr=False)

    @property
    def path_parts(self) -> list[str]:
        return [part.strip() for part in self.full_path.split(">")]

    @property
    def is_leaf(self) -> bool:
        return not self.children


class TaxonomyParser:
    """Parser for Google Product Taxonomy files.

    Example usage:
        parser = TaxonomyParser()
        parser.parse_embedded()
        for node in parser.walk():
            print(node.full_path)
    """

    # Offline subset of https://www.google.com/basepages/producttype/taxonomy-with-ids.en-US.txt
    EMBEDDED_TAXONOMY = '''
1 - Animals & Pet Supplies
3 - Animals & Pet Supplies > Pet Supplies
4 - Animals & Pet Supplies > Pet Supplies > Bird Supplies
5 - Animals & Pet Supplies > Pet Supplies > Cat Supplies
6 - Animals & Pet Supplies > Pet Supplies > Dog Supplies
222 - Apparel & Accessories
1604 - Apparel & Accessories > Clothing
5322 - Apparel & Accessories > Clothing > Shirts & Tops
1581 - Apparel & Accessories > Clothing > Pants
2271 - Apparel & Accessories > Clothing > Dresses
1594 - Apparel & Accessories > Clothing > Outerwear
5182 - Apparel & Accessories > Clothing > Outerwear > Coats & Jackets
167 - Apparel & Accessories > Shoes
178 - Arts & Entertainment
499713 - Arts & Entertainment > Hobbies & Creative Arts
216 - Baby & Toddler
537 - Electronics
264 - Electronics > Audio
3622 - Electronics > Audio > Headphones
505766 - Electronics > Audio > Speakers
543 - Electronics > Computers
5254 - Electronics > Computers > Desktop Computers
328 - Electronics > Computers > Laptops
1928 - Electronics > Computers > Tablets
2082 - Electronics > Mobile Phones
3356 - Electronics > Video Game Consoles
412 - Food, Beverages & Tobacco
422 - Food, Beverages & Tobacco > Beverages
2887 - Food, Beverages & Tobacco > Food Items
436 - Furniture
6356 - Furniture > Beds & Accessories
443 - Furniture > Chairs
442 - Furniture > Tables
451 - Health & Beauty
2915 - Health & Beauty > Personal Care
469 - Home & Garden
500040 - Home & Garden > Home Decor
2334 - Home & Garden > Kitchen & Dining
536 - Luggage & Bags
110 - Luggage & Bags > Backpacks
100 - Office Supplies
922 - Office Supplies > Writing Instruments
632 - Software
783 - Sporting Goods
499844 - Sporting Goods > Exercise & Fitness
1011 - Sporting Goods > Outdoor Recreation
772 - Toys & Games
1253 - Toys & Games > Games
1266 - Toys & Games > Games > Board Games
2743 - Toys & Games > Games > Video Games
3867 - Toys & Games > Puzzles
1239 - Toys & Games > Toys
2546 - Vehicles & Parts
'''.strip()

    def __init__(self) -> None:
        self._nodes: dict[int, TaxonomyNode] = {}
        self._roots: list[TaxonomyNode] = []

    def parse_embedded(self) -> list[TaxonomyNode]:
        """Parse the embedded taxonomy subset.

        Returns:
            All nodes in file order.
        """
        return self._parse_lines(self.EMBEDDED_TAXONOMY.splitlines())

    def parse_file(self, path: str | Path) -> list[TaxonomyNode]:
        """Parse a taxonomy file.

        Args:
            path: Path to a taxonomy-with-ids file.

        Returns:
            All nodes in file order.
        """
        with open(path, encoding="utf-8") as f:
            return self._parse_lines(f.readlines())

    def _parse_lines(self, lines: list[str]) -> list[TaxonomyNode]:
        self._nodes.clear()
        self._roots.clear()
        by_path: dict[str, TaxonomyNode] = {}

        for line in lines:
            line = line.strip()
            # Skip blanks, comments and the version header
            if not line or line.startswith("#") or " - " not in line:
                continue

            id_part, path_part = line.split(" - ", 1)
            try:
                node_id = int(id_part.strip())
            except ValueError:
                continue

            parts = [p.strip() for p in path_part.split(">")]
            node = TaxonomyNode(
                id=node_id,
                name=parts[-1],
                full_path=" > ".join(parts),
                level=len(parts),
            )
            self._nodes[node_id] = node
            by_path[node.full_path] = node

        for node in self._nodes.values():
            if node.level == 1:
                self._roots.append(node)
                continue
            parent = by_path.get(" > ".join(node.path_parts[:-1]))
            if parent is not None:
                node.parent_id = parent.id
                parent.children.append(node)

        return list(self._nodes.values())

    def get_by_id(self, node_id: int) -> TaxonomyNode | None:
        return self._nodes.get(node_id)

    def get_root_categories(self) -> list[TaxonomyNode]:
        return list(self._roots)

    def get_leaf_categories(self) -> list[TaxonomyNode]:
        """Nodes without children, the ones products are assigned to."""
        return [node for node in self._nodes.values() if node.is_leaf]

    def walk(self) -> list[TaxonomyNode]:
        """List reachable nodes parents-first.

        Nodes whose parent path is missing from the file are not
        reachable and are left out, so every returned node's parent
        precedes it.

        Returns:
            Nodes in depth-first pre-order.
        """
        ordered: list[TaxonomyNode] = []
        stack = list(reversed(self._roots))
        while stack:
            node = stack.pop()
            ordered.append(node)
            stack.extend(reversed(node.children))
        return ordered
