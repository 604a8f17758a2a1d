"""
Pytest configuration and fixtures.
"""
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from reverse_xslt.config import get_settings


XSL_NAMESPACE = "http://www.w3.org/1999/XSL/Transform"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def xsl_document() -> str:
    """Wrapper declaring the XSL namespace, for building lxml trees directly."""
    return f'<xml xmlns:xsl="{XSL_NAMESPACE}">%s</xml>'


@pytest.fixture
def announcement_template() -> str:
    """Header of a public procurement announcement stylesheet."""
    return """
      <div>
        <xsl:if test="(//a:pozycja != '') and (//a:data_publikacji != '') and (//a:biuletyn != '')">
        Ogłoszenie nr
        <xsl:value-of select="//a:pozycja"/>
        -
        <xsl:value-of select="//a:biuletyn"/>
        z dnia
        <xsl:value-of select="//a:data_publikacji"/>
        r.
        </xsl:if>
      </div>
      <div class="headerMedium_xforms" style="text-align: center">
        <xsl:value-of select="//a:zamawiajacy_miejscowosc"/>
        :
        <xsl:value-of select="//a:nazwa_nadana_zamowieniu"/>
        <br/>
        OGŁOSZENIE O ZAMÓWIENIU -
        <xsl:if test="//a:rodzaj_zamowienia = '0'">Roboty budowlane</xsl:if>
        <xsl:if test="//a:rodzaj_zamowienia = '1'">Dostawy</xsl:if>
        <xsl:if test="//a:rodzaj_zamowienia = '2'">Usługi</xsl:if>
      </div>
      <div>
        <b>Zamieszczanie ogłoszenia:</b>
        <xsl:if test="//a:zamieszczanie_obowiazkowe = '1'">obowiązkowe</xsl:if>
        <xsl:if test="//a:zamieszczanie_obowiazkowe != '1'">nieobowiązkowe</xsl:if>
      </div>
    """


@pytest.fixture
def announcement_document() -> str:
    """A rendered announcement header."""
    return """
      <div>
        Ogłoszenie nr 319424 - 2016
        z dnia 2016-10-07 r.
      </div><div class="headerMedium_xforms" style="text-align: center">Kraków: Wykonanie robót budowlanych w zakresie bieżącej konserwacji pomieszczeń budynku na os. Krakowiaków 46 w Krakowie<br />
      OGŁOSZENIE O ZAMÓWIENIU -

        Roboty budowlane
      </div><div><b>Zamieszczanie ogłoszenia:</b>
        obowiązkowe
      </div>
    """


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset cached settings before and after each test for proper isolation."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
