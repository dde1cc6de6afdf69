"""Root test configuration: sample channel documents and session-level cleanup"""

import logging
from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["chandiff.db", "test.db"]

CHANNEL_V1 = """\
<?xml version="1.0" encoding="UTF-8"?>
<channel version="4.5.0">
  <id>c0ffee00-0000-0000-0000-000000000001</id>
  <name>ADT Router</name>
  <revision>3</revision>
  <sourceConnector version="4.5.0">
    <metaDataId>0</metaDataId>
    <name>sourceConnector</name>
    <properties class="com.mirth.connect.connectors.vm.VmReceiverProperties">
      <pluginProperties>
        <com.mirth.connect.plugins.datatypes.hl7v2.HL7v2DataTypeProperties>
          <stripNamespaces>true</stripNamespaces>
        </com.mirth.connect.plugins.datatypes.hl7v2.HL7v2DataTypeProperties>
      </pluginProperties>
      <canBatch>true</canBatch>
    </properties>
    <transformer version="4.5.0">
      <elements>
        <com.mirth.connect.plugins.mapper.MapperStep>
          <name>Map MRN</name>
          <sequenceNumber>0</sequenceNumber>
          <mapping>msg['PID']['PID.3']</mapping>
        </com.mirth.connect.plugins.mapper.MapperStep>
        <com.mirth.connect.plugins.javascriptstep.JavaScriptStep>
          <sequenceNumber>1</sequenceNumber>
          <script>logger.info('source step');</script>
        </com.mirth.connect.plugins.javascriptstep.JavaScriptStep>
      </elements>
      <inboundDataType>HL7V2</inboundDataType>
    </transformer>
    <filter version="4.5.0">
      <elements/>
    </filter>
    <transportName>Channel Reader</transportName>
  </sourceConnector>
  <destinationConnectors>
    <connector version="4.5.0">
      <metaDataId>1</metaDataId>
      <name>Dest A</name>
      <properties class="com.mirth.connect.connectors.js.JavaScriptDispatcherProperties">
        <script>logger.info("destination one");</script>
      </properties>
      <transformer version="4.5.0">
        <elements/>
      </transformer>
      <responseTransformer version="4.5.0">
        <elements/>
      </responseTransformer>
      <filter version="4.5.0">
        <elements/>
      </filter>
      <transportName>JavaScript Writer</transportName>
    </connector>
    <connector version="4.5.0">
      <metaDataId>2</metaDataId>
      <name>Dest B</name>
      <properties class="com.mirth.connect.connectors.http.HttpDispatcherProperties">
        <host>http://localhost:8080</host>
      </properties>
      <transformer version="4.5.0">
        <elements/>
      </transformer>
      <responseTransformer version="4.5.0">
        <elements/>
      </responseTransformer>
      <filter version="4.5.0">
        <elements/>
      </filter>
      <transportName>HTTP Sender</transportName>
    </connector>
  </destinationConnectors>
  <preprocessingScript>return message;</preprocessingScript>
  <postprocessingScript>return;</postprocessingScript>
  <deployScript>return;</deployScript>
  <undeployScript>return;</undeployScript>
  <properties>
    <initialState>STARTED</initialState>
  </properties>
</channel>
"""

# Deploy script edited, Dest B retargeted and given a transformer step.
CHANNEL_V2 = (
    CHANNEL_V1
    .replace("<deployScript>return;</deployScript>",
             "<deployScript>logger.info('deploying');\nreturn;</deployScript>")
    .replace("<host>http://localhost:8080</host>", "<host>http://localhost:9090</host>")
    .replace(
        """<transformer version="4.5.0">
        <elements/>
      </transformer>
      <responseTransformer version="4.5.0">
        <elements/>
      </responseTransformer>
      <filter version="4.5.0">
        <elements/>
      </filter>
      <transportName>HTTP Sender</transportName>""",
        """<transformer version="4.5.0">
        <elements>
          <com.mirth.connect.plugins.javascriptstep.JavaScriptStep>
            <name>dummy transformer</name>
            <sequenceNumber>0</sequenceNumber>
            <script>msg['MSH']['MSH.3'] = 'CHANDIFF';</script>
          </com.mirth.connect.plugins.javascriptstep.JavaScriptStep>
        </elements>
      </transformer>
      <responseTransformer version="4.5.0">
        <elements/>
      </responseTransformer>
      <filter version="4.5.0">
        <elements/>
      </filter>
      <transportName>HTTP Sender</transportName>""",
    )
)


def make_channel(destinations: list[tuple[str, str]], extra: str = "") -> str:
    """Minimal channel with one connector per (metaDataId, name) pair, in the given order."""
    connectors = "".join(
        f"<connector><metaDataId>{dest_id}</metaDataId><name>{name}</name>"
        f"<properties><host>host-{dest_id}</host></properties></connector>"
        for dest_id, name in destinations
    )
    return (
        "<channel><id>c-1</id><name>Router</name>"
        f"<destinationConnectors>{connectors}{extra}</destinationConnectors>"
        "<properties><initialState>STARTED</initialState></properties></channel>"
    )


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI attaches so later tests never write to a closed runner stream."""
    yield
    logger = logging.getLogger("chandiff")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture(name="channel_v1")
def channel_v1_fixture():
    return CHANNEL_V1


@pytest.fixture(name="channel_v2")
def channel_v2_fixture():
    return CHANNEL_V2


@pytest.fixture(name="make_channel")
def make_channel_fixture():
    """Factory for minimal channels built from (metaDataId, name) pairs."""
    return make_channel
