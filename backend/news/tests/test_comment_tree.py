"""
Tests for the comment tree builder and local tree mutations.

These tests verify that:
1. Every node's replies are exactly its children (no duplicates, no loss)
2. Roots are newest-first, replies keep delivery order
3. Orphaned replies are promoted to roots
4. Mutations are pure and keep the parent/child invariant
"""

import copy
from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from news.comment_tree import (
    add_comment_to_tree,
    build_comment_tree,
    count_comments,
    iter_comments,
    remove_comment_from_tree,
    update_comment_in_tree,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)


def comment(id, parent=None, minutes=0, **extra):
    data = {
        'id': id,
        'parentId': parent,
        'createdAt': (T0 + timedelta(minutes=minutes)).isoformat(),
        'content': f'comment {id}',
        'likes': 0,
        'dislikes': 0,
    }
    data.update(extra)
    return data


def ids(nodes):
    return [node['id'] for node in nodes]


class BuildCommentTreeTestCase(SimpleTestCase):

    def test_article_scenario(self):
        """
        C1 (root), C2 (root, newer), C3 (reply to C1), delivered oldest-first.
        Roots must be [C2, C1] and C1.replies == [C3].
        """
        flat = [comment(1, minutes=1), comment(2, minutes=2), comment(3, parent=1, minutes=3)]

        tree = build_comment_tree(flat)

        self.assertEqual(ids(tree), [2, 1])
        self.assertEqual(tree[0]['replies'], [])
        self.assertEqual(ids(tree[1]['replies']), [3])

    def test_roots_newest_first(self):
        flat = [comment(1, minutes=1), comment(2, minutes=2), comment(3, minutes=3)]
        self.assertEqual(ids(build_comment_tree(flat)), [3, 2, 1])

    def test_roots_sorted_by_time_not_string(self):
        """A timestamp without microseconds must still sort as the later one."""
        earlier = comment(1)
        earlier['createdAt'] = '2024-05-01T12:00:00.500000Z'
        later = comment(2)
        later['createdAt'] = '2024-05-01T12:00:01Z'

        self.assertEqual(ids(build_comment_tree([earlier, later])), [2, 1])

    def test_accepts_datetime_objects(self):
        flat = [comment(1, createdAt=T0), comment(2, createdAt=T0 + timedelta(seconds=1))]
        self.assertEqual(ids(build_comment_tree(flat)), [2, 1])

    def test_replies_keep_delivery_order(self):
        flat = [
            comment(1, minutes=0),
            comment(2, parent=1, minutes=1),
            comment(3, parent=1, minutes=2),
            comment(4, parent=1, minutes=3),
        ]
        tree = build_comment_tree(flat)
        self.assertEqual(ids(tree[0]['replies']), [2, 3, 4])

    def test_replies_mirror_parent_ids_exactly(self):
        flat = [
            comment(1, minutes=0),
            comment(2, minutes=1),
            comment(3, parent=1, minutes=2),
            comment(4, parent=3, minutes=3),
            comment(5, parent=2, minutes=4),
            comment(6, parent=3, minutes=5),
            comment(7, parent=1, minutes=6),
        ]
        tree = build_comment_tree(flat)

        for node in iter_comments(tree):
            expected = [c['id'] for c in flat if c['parentId'] == node['id']]
            self.assertEqual(ids(node['replies']), expected)

        seen = ids(iter_comments(tree))
        self.assertEqual(len(seen), len(set(seen)))
        self.assertEqual(sorted(seen), [c['id'] for c in flat])

    def test_orphan_reply_is_promoted_to_root(self):
        """Parent 99 is not in the list (deleted): the reply becomes a root."""
        flat = [comment(1, minutes=0), comment(2, parent=99, minutes=5)]

        tree = build_comment_tree(flat)

        self.assertEqual(ids(tree), [2, 1])
        self.assertEqual(count_comments(tree), 2)

    def test_parent_cycle_is_promoted_not_lost(self):
        """1 and 2 name each other as parent; 3 replies to 1."""
        flat = [
            comment(1, parent=2, minutes=0),
            comment(2, parent=1, minutes=1),
            comment(3, parent=1, minutes=2),
            comment(4, parent=4, minutes=3),
        ]

        tree = build_comment_tree(flat)

        self.assertEqual(ids(tree), [4, 2, 1])
        self.assertEqual(ids(tree[2]['replies']), [3])
        self.assertEqual(sorted(ids(iter_comments(tree))), [1, 2, 3, 4])

    def test_input_is_not_mutated(self):
        flat = [comment(1), comment(2, parent=1, minutes=1)]
        snapshot = copy.deepcopy(flat)

        build_comment_tree(flat)

        self.assertEqual(flat, snapshot)

    def test_empty_list(self):
        self.assertEqual(build_comment_tree([]), [])


class TreeMutationTestCase(SimpleTestCase):

    def setUp(self):
        self.tree = build_comment_tree([
            comment(1, minutes=0),
            comment(2, minutes=1),
            comment(3, parent=1, minutes=2),
            comment(4, parent=3, minutes=3),
        ])
        self.snapshot = copy.deepcopy(self.tree)

    def test_add_root_is_prepended(self):
        tree = add_comment_to_tree(self.tree, comment(5, minutes=10))

        self.assertEqual(ids(tree), [5, 2, 1])
        self.assertEqual(tree[0]['replies'], [])
        self.assertEqual(self.tree, self.snapshot)

    def test_add_reply_under_nested_parent(self):
        tree = add_comment_to_tree(self.tree, comment(5, parent=3, minutes=10), parent_id=3)

        node_3 = tree[1]['replies'][0]
        self.assertEqual(ids(node_3['replies']), [4, 5])
        self.assertEqual(self.tree, self.snapshot)

    def test_add_reply_to_unknown_parent_changes_nothing(self):
        tree = add_comment_to_tree(self.tree, comment(5, parent=42), parent_id=42)
        self.assertEqual(tree, self.snapshot)

    def test_update_patches_only_mutable_fields(self):
        tree = update_comment_in_tree(self.tree, 4, {
            'content': 'edited',
            'likes': 3,
            'dislikes': None,
            'parentId': 2,
            'replies': [],
        })

        node_4 = tree[1]['replies'][0]['replies'][0]
        self.assertEqual(node_4['content'], 'edited')
        self.assertEqual(node_4['likes'], 3)
        self.assertEqual(node_4['dislikes'], 0)
        self.assertEqual(node_4['parentId'], 3)
        self.assertEqual(self.tree, self.snapshot)

    def test_remove_deletes_whole_subtree(self):
        tree = remove_comment_from_tree(self.tree, 3)

        self.assertEqual(ids(iter_comments(tree)), [2, 1])
        self.assertEqual(tree[1]['replies'], [])
        self.assertEqual(self.tree, self.snapshot)

    def test_remove_root(self):
        tree = remove_comment_from_tree(self.tree, 1)
        self.assertEqual(ids(iter_comments(tree)), [2])

    def test_remove_unknown_id_is_noop(self):
        self.assertEqual(remove_comment_from_tree(self.tree, 999), self.snapshot)
