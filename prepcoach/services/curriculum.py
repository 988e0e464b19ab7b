"""Reference curriculum: top-level topics with ordered subtopics."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from prepcoach.models import Difficulty, Topic


@dataclass(frozen=True)
class TopicSpec:
	id: str
	name: str
	difficulty: Difficulty = Difficulty.BEGINNER
	description: str = ""
	prerequisites: Tuple[str, ...] = ()
	subtopics: Tuple["TopicSpec", ...] = ()


# URL slug -> category name
CATEGORY_SLUGS: Mapping[str, str] = MappingProxyType({
	"data-structures": "Data Structures",
	"algorithms": "Algorithms",
	"system-design": "System Design",
	"web-development": "Web Development",
})


CURRICULUM: Dict[str, TopicSpec] = {
	"Data Structures": TopicSpec(
		id="ds-arrays-strings",
		name="Arrays & Strings",
		description="Master fundamental data structures like arrays, linked lists, trees, and graphs.",
		subtopics=(
			TopicSpec("ds-basic-array", "Basic Array Operations", Difficulty.BEGINNER,
				"Traversal, insertion, deletion and in-place updates."),
			TopicSpec("ds-two-pointers", "Two Pointers", Difficulty.EASY,
				"Opposite-end and fast/slow pointer techniques.", ("ds-basic-array",)),
			TopicSpec("ds-sliding-window", "Sliding Window", Difficulty.MEDIUM,
				"Fixed and variable windows over sequences.", ("ds-two-pointers",)),
			TopicSpec("ds-hash-maps", "Hash Maps & Sets", Difficulty.EASY,
				"Counting, lookups and deduplication.", ("ds-basic-array",)),
			TopicSpec("ds-linked-lists", "Linked Lists", Difficulty.MEDIUM,
				"Reversal, merging and cycle detection.", ("ds-two-pointers",)),
			TopicSpec("ds-trees", "Trees", Difficulty.MEDIUM,
				"Binary trees, BSTs and traversals.", ("ds-linked-lists",)),
		),
	),
	"Algorithms": TopicSpec(
		id="algo-fundamentals",
		name="Algorithm Fundamentals",
		difficulty=Difficulty.EASY,
		description="Learn essential algorithms and problem-solving techniques.",
		prerequisites=("ds-arrays-strings",),
		subtopics=(
			TopicSpec("algo-sorting", "Sorting", Difficulty.BEGINNER,
				"Comparison sorts and their trade-offs."),
			TopicSpec("algo-binary-search", "Binary Search", Difficulty.EASY,
				"Searching sorted data and answer spaces.", ("algo-sorting",)),
			TopicSpec("algo-recursion", "Recursion & Backtracking", Difficulty.MEDIUM,
				"Recursive decomposition and search with pruning."),
			TopicSpec("algo-graphs", "Graph Traversal", Difficulty.MEDIUM,
				"BFS, DFS and topological ordering.", ("algo-recursion",)),
			TopicSpec("algo-dynamic-programming", "Dynamic Programming", Difficulty.HARD,
				"Memoization and tabulation.", ("algo-recursion",)),
		),
	),
	"System Design": TopicSpec(
		id="sd-fundamentals",
		name="System Design Fundamentals",
		difficulty=Difficulty.MEDIUM,
		description="Understand how to design scalable and efficient systems.",
		subtopics=(
			TopicSpec("sd-scalability", "Scalability Basics", Difficulty.EASY,
				"Vertical vs horizontal scaling, load balancing."),
			TopicSpec("sd-caching", "Caching", Difficulty.MEDIUM,
				"Cache placement, eviction and invalidation.", ("sd-scalability",)),
			TopicSpec("sd-databases", "Databases & Sharding", Difficulty.MEDIUM,
				"Replication, partitioning and consistency.", ("sd-scalability",)),
			TopicSpec("sd-messaging", "Queues & Messaging", Difficulty.HARD,
				"Asynchronous processing and delivery guarantees.", ("sd-databases",)),
		),
	),
	"Web Development": TopicSpec(
		id="web-fundamentals",
		name="Web Fundamentals",
		difficulty=Difficulty.EASY,
		description="HTTP, APIs and the browser platform.",
		subtopics=(
			TopicSpec("web-http", "HTTP & REST", Difficulty.BEGINNER,
				"Methods, status codes and resource design."),
			TopicSpec("web-auth", "Authentication", Difficulty.MEDIUM,
				"Sessions, tokens and password storage.", ("web-http",)),
			TopicSpec("web-performance", "Web Performance", Difficulty.MEDIUM,
				"Caching headers, bundling and rendering cost.", ("web-http",)),
		),
	),
}


def category_for_slug(slug: str) -> Optional[str]:
	"""Accepts a URL slug or a category name."""
	if slug in CATEGORY_SLUGS:
		return CATEGORY_SLUGS[slug]
	if slug in CATEGORY_SLUGS.values():
		return slug
	return None


def seed_curriculum(db: Session, curriculum: Optional[Mapping[str, TopicSpec]] = None) -> int:
	"""Insert missing curriculum topics. Returns the number of rows added."""
	added = 0
	for category, spec in (curriculum or CURRICULUM).items():
		if db.get(Topic, spec.id) is None:
			db.add(_topic(spec, category, parent_id=None, position=0))
			added += 1
		for position, child in enumerate(spec.subtopics):
			if db.get(Topic, child.id) is None:
				db.add(_topic(child, category, parent_id=spec.id, position=position))
				added += 1
	if added:
		db.commit()
	return added


def _topic(spec: TopicSpec, category: str, parent_id: Optional[str], position: int) -> Topic:
	return Topic(
		id=spec.id,
		name=spec.name,
		category=category,
		difficulty=spec.difficulty,
		description=spec.description,
		prerequisites=list(spec.prerequisites),
		parent_id=parent_id,
		position=position,
	)
