"""Tests for the graph -> raster pipeline."""

import asyncio

from linkmatrix.config import Config
from linkmatrix.graph.base import InMemoryLinkGraph
from linkmatrix.visualize import (
    VisualizationRequests,
    build_visualization,
    build_visualization_async,
)


class TestBuildVisualization:
    def test_pipeline(self, folder_graph, config):
        viz = build_visualization(folder_graph, config)
        assert viz.matrix.size == 6
        assert viz.cell_scale == 4
        assert viz.raster.size == (24, 24)
        assert sorted(viz.squares) == [1, 2]
        assert [d.path for d in viz.documents][0] == "index.md"
        assert "6 documents, 7 links" in repr(viz)

    def test_overlay_off_skips_squares(self, folder_graph):
        viz = build_visualization(folder_graph, Config(cell_scale=4, show_folder_overlay=False))
        assert viz.squares == {}

    def test_tiered_scale(self, abc_graph):
        assert build_visualization(abc_graph, Config()).cell_scale == 16

    def test_empty_corpus(self):
        viz = build_visualization(InMemoryLinkGraph([]), Config())
        assert viz.matrix.size == 0
        assert viz.raster.size == (0, 0)
        assert viz.squares == {}


class TestAsyncBuild:
    def test_matches_sync(self, folder_graph, config):
        viz = asyncio.run(build_visualization_async(folder_graph, config, chunk_rows=2))
        expected = build_visualization(folder_graph, config)
        assert viz.matrix == expected.matrix
        assert viz.squares == expected.squares
        assert viz.raster.tobytes() == expected.raster.tobytes()

    def test_superseded_request_is_discarded(self, folder_graph, abc_graph, config):
        requests = VisualizationRequests(config, chunk_rows=1)

        async def run():
            return await asyncio.gather(
                requests.request(folder_graph),
                requests.request(abc_graph),
            )

        first, second = asyncio.run(run())
        assert first is None
        assert second is not None
        assert second.matrix.size == 3
        assert requests.latest is second
        assert requests.generation == 2

    def test_sequential_requests_all_kept(self, abc_graph, config):
        requests = VisualizationRequests(config)

        async def run():
            a = await requests.request(abc_graph)
            b = await requests.request(abc_graph)
            return a, b

        a, b = asyncio.run(run())
        assert a is not None and b is not None
        assert requests.latest is b
