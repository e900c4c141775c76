"""Concurrency tests: readers see whole snapshots while writers publish."""

from concurrent.futures import ThreadPoolExecutor
import threading

from docs_search_engine.domain.model import Document


ROUNDS = 60


def twins(i: int) -> list[Document]:
    return [
        Document(id=f"twin_{i}_a", title=f"Twin {i}", content="twin pages ship together"),
        Document(id=f"twin_{i}_b", title=f"Twin {i}", content="twin pages ship together"),
    ]


def test_readers_never_see_half_applied_batches(engine):
    done = threading.Event()
    errors: list[str] = []

    def writer():
        try:
            for i in range(ROUNDS):
                engine.batch_update(twins(i))
        finally:
            done.set()

    def reader():
        checks = 0
        while not done.is_set() or checks == 0:
            found = {result.id for result in engine.search("twin", limit=None, include_snippet=False)}
            for doc_id in found:
                sibling = doc_id[:-1] + ("b" if doc_id.endswith("a") else "a")
                if sibling not in found:
                    errors.append(f"{doc_id} visible without {sibling}")
            if engine.get_stats().document_count % 2:
                errors.append("odd document count")
            checks += 1
        return checks

    with ThreadPoolExecutor(max_workers=5) as pool:
        readers = [pool.submit(reader) for _ in range(4)]
        pool.submit(writer).result()
        assert all(future.result() > 0 for future in readers)

    assert errors == []
    assert engine.get_stats().document_count == 2 + 2 * ROUNDS


def test_concurrent_writers_do_not_lose_updates(engine):
    def write(worker: int) -> None:
        for i in range(20):
            engine.update_document(Document(id=f"w{worker}_{i}", title="Concurrent", content="write"))

    threads = [threading.Thread(target=write, args=(worker,)) for worker in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert engine.get_stats().document_count == 2 + 5 * 20
    assert len(engine.search("concurrent", limit=None)) == 100


def test_removals_and_searches_interleave(engine):
    engine.batch_update([Document(id=f"tmp_{i}", title="Temporary") for i in range(50)])

    def remove(i: int) -> None:
        engine.remove_document(f"tmp_{i}")

    def search(_: int) -> int:
        return len(engine.search("temporary", limit=None))

    with ThreadPoolExecutor(max_workers=8) as pool:
        removals = [pool.submit(remove, i) for i in range(50)]
        counts = list(pool.map(search, range(50)))
        for future in removals:
            future.result()

    assert all(0 <= count <= 50 for count in counts)
    assert engine.search("temporary") == []
    assert engine.get_stats().document_count == 2
