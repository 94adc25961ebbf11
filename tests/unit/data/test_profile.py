from pprof_analyzer.data.profile import Profile, Sample


def _payload() -> dict:
    fn = {"id": 1, "name": "main.handler", "filename": "main.go"}
    return {
        "sample_types": [{"type": "inuse_space", "unit": "bytes"}],
        "samples": [
            {
                "values": [512],
                "locations": [{"id": 1, "address": 4096, "lines": [{"function": fn, "line": 42}]}],
                "labels": {"type": ["[]byte", "ignored"]},
            }
        ],
        "duration_nanos": 5,
    }


def test_from_dict_structures_nested_model():
    profile = Profile.from_dict(_payload())
    assert profile.sample_type_names() == ["inuse_space/bytes"]
    sample = profile.samples[0]
    assert sample.values == (512,)
    assert sample.locations[0].lines[0].function.name == "main.handler"
    assert sample.locations[0].lines[0].line == 42
    assert sample.label("type") == "[]byte"
    assert profile.duration_nanos == 5


def test_to_dict_round_trip():
    profile = Profile.from_dict(_payload())
    assert Profile.from_dict(profile.to_dict()) == profile


def test_sample_labels_normalized():
    s = Sample(labels={"type": "Buffer"})
    assert s.labels == {"type": ("Buffer",)}
    assert s.label("missing") is None
    assert Sample().values == ()


def test_from_dict_keeps_bare_string_label_whole():
    payload = _payload()
    payload["samples"][0]["labels"] = {"type": "Buffer", "object": ["a", "b"]}
    sample = Profile.from_dict(payload).samples[0]
    assert sample.labels == {"type": ("Buffer",), "object": ("a", "b")}
    assert sample.label("type") == "Buffer"
