#!/usr/bin/env python3
"""
Tests for the indexed min-heap
"""
import pytest

from utils.indexed_heap import IndexedMinHeap


class Job:
    def __init__(self, name, priority):
        self.name = name
        self.priority = priority


class TestIndexedMinHeap:

    def setup_method(self):
        self.heap = IndexedMinHeap(key=lambda job: job.priority, ident=lambda job: job.name)

    def test_pops_in_key_order(self):
        for name, priority in [('c', 30), ('a', 10), ('e', 50), ('b', 20), ('d', 40)]:
            self.heap.push(Job(name, priority))

        popped = [self.heap.pop().name for _ in range(len(self.heap))]
        assert popped == ['a', 'b', 'c', 'd', 'e']
        assert len(self.heap) == 0

    def test_pop_and_peek_empty_raise(self):
        with pytest.raises(IndexError):
            self.heap.pop()
        with pytest.raises(IndexError):
            self.heap.peek()

    def test_push_same_identity_does_not_duplicate(self):
        job = Job('a', 10)
        self.heap.push(job)
        self.heap.push(Job('b', 5))
        job.priority = 1
        self.heap.push(job)

        assert len(self.heap) == 2
        assert self.heap.pop() is job

    def test_repush_after_key_change_resifts_both_ways(self):
        jobs = [Job(str(i), i) for i in range(10)]
        for job in jobs:
            self.heap.push(job)

        jobs[0].priority = 100
        self.heap.push(jobs[0])
        jobs[9].priority = -1
        self.heap.push(jobs[9])

        popped = [self.heap.pop().name for _ in range(len(self.heap))]
        assert popped[0] == '9'
        assert popped[-1] == '0'
        assert len(popped) == 10

    def test_iter_and_clear(self):
        job = Job('a', 1)
        self.heap.push(job)
        assert self.heap.peek() is job
        assert list(self.heap) == [job]

        self.heap.clear()
        assert len(self.heap) == 0
        assert not self.heap
