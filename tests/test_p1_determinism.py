from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from smartcomp.engine.orchestrator import Orchestrator
from smartcomp.record import CODEC_IDS

pytestmark = pytest.mark.p1

PAYLOADS = [
    b"abracadabra alakazam abracadabra",
    b"mississippi river, mississippi state\n" * 7,
    b"0123456789" * 30,
    "ąęćż ☃ ąęćż ☃".encode("utf-8") * 9,
]


def _stable_json(res) -> dict:
    obj = res.record.to_json()
    obj.pop("processingTime")
    return obj


@pytest.mark.parametrize("codec_id", CODEC_IDS)
@pytest.mark.parametrize("is_text", [True, False])
def test_same_input_same_output(codec_id: str, is_text: bool) -> None:
    for payload in PAYLOADS:
        r1 = Orchestrator().compress(payload, codec_id, is_text=is_text)
        r2 = Orchestrator().compress(payload, codec_id, is_text=is_text)
        assert r1.artifact == r2.artifact
        assert _stable_json(r1) == _stable_json(r2)


def test_shared_instance_parallel_calls_do_not_interfere() -> None:
    o = Orchestrator()
    jobs = [(p, c) for p in PAYLOADS for c in CODEC_IDS] * 4

    expected = {(p, c): o.compress(p, c).artifact for p, c in set(jobs)}

    def work(job: tuple[bytes, str]) -> tuple[tuple[bytes, str], bytes, bytes]:
        p, c = job
        res = o.compress(p, c)
        back = o.decompress(res.artifact, res.record).payload
        return job, res.artifact, back

    with ThreadPoolExecutor(max_workers=8) as ex:
        for job, artifact, back in ex.map(work, jobs):
            assert artifact == expected[job]
            assert back == job[0]
