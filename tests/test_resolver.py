from docker_deployer.models import Service
from docker_deployer.resolver import ContainerResolver
from docker_deployer.runtime import RuntimeContainer


def test_resolves_stopped_container_by_exact_name(runtime):
    runtime.add_container("web-old", running=True)
    container_id = runtime.add_container("web", running=False)

    match = ContainerResolver(runtime).resolve(Service(name="web"))

    assert match is not None
    assert match.id == container_id
    assert match.state == "exited"


def test_prefix_and_substring_names_do_not_match(runtime):
    runtime.add_container("web-1")
    runtime.add_container("myweb")

    assert ContainerResolver(runtime).resolve(Service(name="web")) is None


def test_no_containers_resolves_to_none(runtime):
    assert ContainerResolver(runtime).resolve(Service(name="web")) is None
    assert runtime.calls == [("list", "")]


def test_first_of_several_matches_wins():
    class Listing:
        def list_containers(self, all=True):
            return [
                RuntimeContainer(id="first", names=("/db", "/web/db")),
                RuntimeContainer(id="second", names=("/db",)),
            ]

    assert ContainerResolver(Listing()).resolve(Service(name="db")).id == "first"


def test_every_resolve_queries_the_runtime(runtime):
    resolver = ContainerResolver(runtime)
    resolver.resolve(Service(name="web"))
    runtime.add_container("web")

    assert resolver.resolve(Service(name="web")) is not None
    assert runtime.calls == [("list", ""), ("list", "")]
